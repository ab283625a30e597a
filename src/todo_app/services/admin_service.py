from __future__ import annotations

import logging
from typing import List, Union

from ..errors import NotFound
from ..models import Identity, Role, TodoEntity, UserEntity
from ..policy import can_change_role
from ..repositories import Repository
from . import todo_service

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def list_users(repo: Repository, identity: Identity) -> List[UserEntity]:
    """All users. Password hashes are stripped by the response schema."""
    return repo.list_users()


# PUBLIC_INTERFACE
def update_user_role(repo: Repository, identity: Identity, target_id: int, new_role: Union[Role, str]) -> UserEntity:
    """
    Change another user's role (or re-affirm one's own admin role).

    Raises InvalidRole, ForbiddenSelfDemotion or NotFound.
    """
    role = can_change_role(identity, target_id, new_role)

    if repo.get_user(target_id) is None:
        raise NotFound("User not found")

    updated = repo.update_user_role(target_id, role)
    if updated is None:
        raise NotFound("User not found")

    logger.info(
        "User role changed",
        extra={"target_user_id": target_id, "role": role.value, "changed_by": identity.id},
    )
    return updated


# PUBLIC_INTERFACE
def list_all_todos(repo: Repository, identity: Identity) -> List[TodoEntity]:
    return todo_service.list_all_todos(repo, identity)
