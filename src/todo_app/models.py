from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict


# Largest id a SQLite INTEGER column can hold
MAX_ROW_ID = 2**63 - 1


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Category(str, Enum):
    URGENT = "Urgent"
    NON_URGENT = "Non-Urgent"


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    Stored user record.

    Fields:
    - id: Unique integer identifier assigned by the store
    - username: Unique (case-insensitive) login name
    - email: Unique (case-insensitive) email address
    - password: bcrypt hash; never leaves the service
    - role: 'user' or 'admin'
    """

    id: int
    username: str
    email: str
    password: str
    role: str


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    Stored todo record.

    Fields:
    - id: Unique integer identifier assigned by the store
    - title: Short title (1..100 chars)
    - description: Optional detailed description (<= 500 chars)
    - due_date: Optional ISO calendar date string (YYYY-MM-DD)
    - category: 'Urgent' or 'Non-Urgent'
    - completed: Boolean completion flag
    - user_id: Id of the owning user, fixed at creation
    - username: Owner's username as it was when the todo was created
    """

    id: int
    title: str
    description: Optional[str]
    due_date: Optional[str]
    category: str
    completed: bool
    user_id: int
    username: str


class SessionEntity(TypedDict):
    token: str
    user_id: int
    created_at: datetime
    expires_at: datetime


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Identity:
    """The authenticated principal resolved from a request's session."""

    id: int
    username: str
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: UserEntity) -> "Identity":
        return cls(id=user["id"], username=user["username"], email=user["email"], role=Role(user["role"]))
