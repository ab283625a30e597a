from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path

from ..auth import get_repo, require_admin
from ..models import MAX_ROW_ID, Identity
from ..repositories import Repository
from ..schemas import RoleUpdate, TodoOut, UserOut
from ..services import admin_service

# Every route here needs an admin session; require_admin answers 401/403 otherwise
router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Admin role required"},
    },
)


# PUBLIC_INTERFACE
@router.get(
    "/users",
    response_model=List[UserOut],
    summary="List users",
    description="List all users. Password hashes are never returned.",
)
def list_users(
    identity: Identity = Depends(require_admin),
    repo: Repository = Depends(get_repo),
) -> List[UserOut]:
    return [UserOut(**u) for u in admin_service.list_users(repo, identity)]


# PUBLIC_INTERFACE
@router.patch(
    "/users/{user_id}/role",
    response_model=UserOut,
    summary="Change user role",
    description="Promote or demote a user. Admins cannot demote themselves.",
    responses={
        400: {"description": "Invalid role, invalid id, or self-demotion"},
        404: {"description": "User not found"},
    },
)
def update_user_role(
    *,
    user_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    payload: RoleUpdate,
    identity: Identity = Depends(require_admin),
    repo: Repository = Depends(get_repo),
) -> UserOut:
    updated = admin_service.update_user_role(repo, identity, user_id, payload.role)
    return UserOut(**updated)


# PUBLIC_INTERFACE
@router.get(
    "/todos",
    response_model=List[TodoOut],
    summary="List all Todos",
    description="List every user's todos.",
)
def list_all_todos(
    identity: Identity = Depends(require_admin),
    repo: Repository = Depends(get_repo),
) -> List[TodoOut]:
    return [TodoOut(**t) for t in admin_service.list_all_todos(repo, identity)]
