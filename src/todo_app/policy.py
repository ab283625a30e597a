"""
Authorization rules for todos and user roles.

Plain functions over an ``Identity`` and stored records; no I/O.
"""
from __future__ import annotations

from typing import Union

from .errors import ForbiddenSelfDemotion, InvalidRole
from .models import Identity, Role, TodoEntity


# PUBLIC_INTERFACE
def can_access_todo(identity: Identity, todo: TodoEntity) -> bool:
    """True iff ``identity`` owns ``todo`` or is an admin."""
    return identity.id == todo["user_id"] or identity.role == Role.ADMIN


# PUBLIC_INTERFACE
def can_change_role(acting: Identity, target_user_id: int, new_role: Union[Role, str]) -> Role:
    """
    Validate a role change requested by ``acting``.

    Returns the parsed role. Raises InvalidRole for anything other than
    'user'/'admin' and ForbiddenSelfDemotion when an actor tries to give
    themselves a non-admin role. The caller is responsible for checking that
    ``acting`` is an admin.
    """
    try:
        role = Role(new_role)
    except ValueError:
        raise InvalidRole() from None

    if acting.id == target_user_id and role != Role.ADMIN:
        raise ForbiddenSelfDemotion()
    return role
