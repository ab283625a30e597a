from __future__ import annotations

import logging

from fastapi import Depends, Request, Response

from .errors import Forbidden, Unauthenticated
from .models import Identity, UserEntity
from .repositories import Repository
from .sessions import SessionStore
from .settings import Settings

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repo(request: Request) -> Repository:
    return request.app.state.repository


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.session_store


# PUBLIC_INTERFACE
def get_current_identity(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    repo: Repository = Depends(get_repo),
    sessions: SessionStore = Depends(get_sessions),
) -> Identity:
    """
    Resolve the session cookie to the authenticated Identity.

    Raises:
        Unauthenticated(401) if the cookie is missing, the session is unknown or
        expired, or the session's user no longer exists.

    The user record is re-read on every request, so a role change applies to
    that user's next request.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise Unauthenticated()

    session = sessions.get(token)
    if session is None:
        raise Unauthenticated()

    user = repo.get_user(session["user_id"])
    if user is None:
        sessions.delete(token)
        raise Unauthenticated()
    return Identity.from_user(user)


# PUBLIC_INTERFACE
def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """
    Dependency for admin-only routes.

    Raises:
        Unauthenticated(401) via get_current_identity, Forbidden(403) for non-admins.
    """
    if not identity.is_admin:
        logger.warning("Admin route denied", extra={"user_id": identity.id})
        raise Forbidden()
    return identity


# PUBLIC_INTERFACE
def start_session(response: Response, settings: Settings, sessions: SessionStore, user: UserEntity) -> None:
    """Create a server-side session for ``user`` and set its cookie on ``response``."""
    session = sessions.create(user["id"])
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session["token"],
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


# PUBLIC_INTERFACE
def end_session(request: Request, response: Response, settings: Settings, sessions: SessionStore) -> None:
    """Destroy the request's session, if any, and clear the cookie."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        sessions.delete(token)
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
