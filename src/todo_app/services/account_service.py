from __future__ import annotations

import logging
from typing import Optional

from ..errors import Conflict, InvalidCredentials
from ..models import Role, UserEntity
from ..passwords import hash_password, verify_password
from ..repositories import Repository
from ..schemas import RegisterRequest

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNTS = (
    {"username": "admin", "email": "admin@example.com", "password": "password", "role": Role.ADMIN},
    {"username": "user", "email": "user@example.com", "password": "password", "role": Role.USER},
)


# PUBLIC_INTERFACE
def register(repo: Repository, payload: RegisterRequest) -> UserEntity:
    """
    Create a regular user account.

    Raises Conflict when the username or email (case-insensitive) is taken.
    """
    if repo.get_user_by_username(payload.username) is not None:
        raise Conflict("Username already exists")
    if repo.get_user_by_email(payload.email) is not None:
        raise Conflict("Email already exists")

    user = repo.create_user(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=Role.USER,
    )
    logger.info("User registered", extra={"user_id": user["id"], "username": user["username"]})
    return user


# PUBLIC_INTERFACE
def authenticate(repo: Repository, username_or_email: str, password: str) -> UserEntity:
    """
    Return the account matching the credentials.

    The login name is tried as a username first, then as an email.
    Raises InvalidCredentials for an unknown account or a wrong password.
    """
    user: Optional[UserEntity] = repo.get_user_by_username(username_or_email)
    if user is None:
        user = repo.get_user_by_email(username_or_email)

    if user is None or not verify_password(password, user["password"]):
        logger.warning("Failed login attempt", extra={"login": username_or_email})
        raise InvalidCredentials()

    logger.info("User logged in", extra={"user_id": user["id"]})
    return user


# PUBLIC_INTERFACE
def seed_default_users(repo: Repository) -> None:
    """Create the default admin and regular accounts unless their usernames exist."""
    for account in DEFAULT_ACCOUNTS:
        if repo.get_user_by_username(account["username"]) is not None:
            continue
        repo.create_user(
            username=account["username"],
            email=account["email"],
            password_hash=hash_password(account["password"]),
            role=account["role"],
        )
        logger.info("Seeded default account", extra={"username": account["username"]})
