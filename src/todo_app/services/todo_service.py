from __future__ import annotations

import logging
from typing import List

from ..errors import Forbidden, NotFound
from ..models import Identity, TodoEntity
from ..policy import can_access_todo
from ..repositories import Repository
from ..schemas import TodoDraft

logger = logging.getLogger(__name__)


def _authorized_todo(repo: Repository, identity: Identity, todo_id: int, action: str) -> TodoEntity:
    """Load a todo and check that ``identity`` may act on it."""
    todo = repo.get_todo(todo_id)
    if todo is None:
        raise NotFound("Todo not found")
    if not can_access_todo(identity, todo):
        logger.warning(
            "Todo access denied",
            extra={"todo_id": todo_id, "user_id": identity.id, "action": action},
        )
        raise Forbidden(f"Forbidden: You do not have permission to {action} this todo")
    return todo


# PUBLIC_INTERFACE
def list_todos(repo: Repository, identity: Identity) -> List[TodoEntity]:
    """Todos owned by ``identity``."""
    return repo.list_todos(user_id=identity.id)


# PUBLIC_INTERFACE
def list_all_todos(repo: Repository, identity: Identity) -> List[TodoEntity]:
    """Every todo in the store. Callers must have checked that ``identity`` is an admin."""
    return repo.list_todos()


# PUBLIC_INTERFACE
def create_todo(repo: Repository, identity: Identity, draft: TodoDraft) -> TodoEntity:
    """Create a todo owned by ``identity``; it always starts incomplete."""
    todo = repo.create_todo(draft, user_id=identity.id, username=identity.username)
    logger.info("Todo created", extra={"todo_id": todo["id"], "user_id": identity.id})
    return todo


# PUBLIC_INTERFACE
def get_todo(repo: Repository, identity: Identity, todo_id: int) -> TodoEntity:
    return _authorized_todo(repo, identity, todo_id, "access")


# PUBLIC_INTERFACE
def update_todo(repo: Repository, identity: Identity, todo_id: int, draft: TodoDraft) -> TodoEntity:
    """
    Overwrite the editable fields of a todo.
    Owner, owner's username and completion state are left untouched.
    """
    _authorized_todo(repo, identity, todo_id, "update")
    updated = repo.update_todo(todo_id, draft)
    if updated is None:
        raise NotFound("Todo not found")
    logger.info("Todo updated", extra={"todo_id": todo_id, "user_id": identity.id})
    return updated


# PUBLIC_INTERFACE
def delete_todo(repo: Repository, identity: Identity, todo_id: int) -> None:
    _authorized_todo(repo, identity, todo_id, "delete")
    repo.delete_todo(todo_id)
    logger.info("Todo deleted", extra={"todo_id": todo_id, "user_id": identity.id})


# PUBLIC_INTERFACE
def toggle_todo(repo: Repository, identity: Identity, todo_id: int) -> TodoEntity:
    """Flip the completed flag; toggling twice restores the original state."""
    _authorized_todo(repo, identity, todo_id, "update")
    toggled = repo.toggle_todo(todo_id)
    if toggled is None:
        raise NotFound("Todo not found")
    logger.info(
        "Todo completion toggled",
        extra={"todo_id": todo_id, "user_id": identity.id, "completed": toggled["completed"]},
    )
    return toggled
