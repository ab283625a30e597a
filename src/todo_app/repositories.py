from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, List, Optional

from .errors import Conflict
from .models import Category, Role, TodoEntity, UserEntity
from .schemas import TodoDraft
from .settings import Settings

logger = logging.getLogger(__name__)


def lookup_key(value: str) -> str:
    """Case-insensitive form of a username or email, with full Unicode case folding."""
    return value.strip().casefold()


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for user and todo storage backends."""

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserEntity]:
        """Return a user by id, or None if not found."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserEntity]:
        """Return the user whose username matches case-insensitively, or None."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        """Return the user whose email matches case-insensitively, or None."""

    @abstractmethod
    def create_user(self, username: str, email: str, password_hash: str, role: Role = Role.USER) -> UserEntity:
        """
        Create and return a new user with a freshly assigned id.
        Raises Conflict if the username or email is already taken.
        """

    @abstractmethod
    def list_users(self) -> List[UserEntity]:
        """Return all users ordered by id."""

    @abstractmethod
    def update_user_role(self, user_id: int, role: Role) -> Optional[UserEntity]:
        """Set a user's role. Return the updated user or None if not found."""

    # Todos

    @abstractmethod
    def create_todo(self, draft: TodoDraft, user_id: int, username: str) -> TodoEntity:
        """Create an incomplete todo owned by ``user_id`` and return it."""

    @abstractmethod
    def list_todos(self, user_id: Optional[int] = None) -> List[TodoEntity]:
        """Return todos ordered by id, restricted to one owner when ``user_id`` is given."""

    @abstractmethod
    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a todo by id, or None if not found."""

    @abstractmethod
    def update_todo(self, todo_id: int, draft: TodoDraft) -> Optional[TodoEntity]:
        """
        Overwrite title, description, due_date and category.
        Return the updated todo or None if not found.
        """

    @abstractmethod
    def delete_todo(self, todo_id: int) -> bool:
        """Delete a todo by id. Return True if deleted, False if it was already gone."""

    @abstractmethod
    def toggle_todo(self, todo_id: int) -> Optional[TodoEntity]:
        """Flip a todo's completed flag. Return the updated todo or None if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._users: Dict[int, UserEntity] = {}
        self._todos: Dict[int, TodoEntity] = {}
        self._next_user_id = 1
        self._next_todo_id = 1

    def _find_user(self, field: str, value: str) -> Optional[UserEntity]:
        needle = lookup_key(value)
        with self._lock:
            for user in self._users.values():
                if lookup_key(user[field]) == needle:  # type: ignore[literal-required]
                    return user.copy()
        return None

    def get_user(self, user_id: int) -> Optional[UserEntity]:
        with self._lock:
            user = self._users.get(user_id)
            return None if user is None else user.copy()

    def get_user_by_username(self, username: str) -> Optional[UserEntity]:
        return self._find_user("username", username)

    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        return self._find_user("email", email)

    def create_user(self, username: str, email: str, password_hash: str, role: Role = Role.USER) -> UserEntity:
        with self._lock:
            # Check and insert under one lock so concurrent registrations cannot both win
            if self._find_user("username", username) is not None:
                raise Conflict("Username already exists")
            if self._find_user("email", email) is not None:
                raise Conflict("Email already exists")
            user: UserEntity = {
                "id": self._next_user_id,
                "username": username,
                "email": email,
                "password": password_hash,
                "role": Role(role).value,
            }
            self._next_user_id += 1
            self._users[user["id"]] = user
            return user.copy()

    def list_users(self) -> List[UserEntity]:
        with self._lock:
            return [self._users[k].copy() for k in sorted(self._users)]

    def update_user_role(self, user_id: int, role: Role) -> Optional[UserEntity]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            user["role"] = Role(role).value
            return user.copy()

    def create_todo(self, draft: TodoDraft, user_id: int, username: str) -> TodoEntity:
        with self._lock:
            todo: TodoEntity = {
                "id": self._next_todo_id,
                "title": draft.title,
                "description": draft.description,
                "due_date": draft.due_date,
                "category": Category(draft.category).value,
                "completed": False,
                "user_id": user_id,
                "username": username,
            }
            self._next_todo_id += 1
            self._todos[todo["id"]] = todo
            return todo.copy()

    def list_todos(self, user_id: Optional[int] = None) -> List[TodoEntity]:
        with self._lock:
            items = [self._todos[k] for k in sorted(self._todos)]
            if user_id is not None:
                items = [t for t in items if t["user_id"] == user_id]
            return [t.copy() for t in items]

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            todo = self._todos.get(todo_id)
            return None if todo is None else todo.copy()

    def update_todo(self, todo_id: int, draft: TodoDraft) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated["title"] = draft.title
            updated["description"] = draft.description
            updated["due_date"] = draft.due_date
            updated["category"] = Category(draft.category).value
            self._todos[todo_id] = updated
            return updated.copy()

    def delete_todo(self, todo_id: int) -> bool:
        with self._lock:
            return self._todos.pop(todo_id, None) is not None

    def toggle_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            todo = self._todos.get(todo_id)
            if todo is None:
                return None
            todo["completed"] = not todo["completed"]
            return todo.copy()


# PUBLIC_INTERFACE
def get_repository(settings: Settings) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using SQLite repository", extra={"path": settings.sqlite_db_path})
        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory repository")
    return InMemoryRepository()
