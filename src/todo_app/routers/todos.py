from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, status

from ..auth import get_current_identity, get_repo
from ..models import MAX_ROW_ID, Identity
from ..repositories import Repository
from ..schemas import MessageOut, TodoDraft, TodoOut
from ..services import todo_service

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)

_ITEM_RESPONSES = {
    400: {"description": "Invalid todo id or payload"},
    401: {"description": "Not authenticated"},
    403: {"description": "Not the owner and not an admin"},
    404: {"description": "Todo not found"},
}


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List my Todos",
    description="List the todos owned by the logged-in user.",
    responses={401: {"description": "Not authenticated"}},
)
def list_todos(
    identity: Identity = Depends(get_current_identity),
    repo: Repository = Depends(get_repo),
) -> List[TodoOut]:
    return [TodoOut(**t) for t in todo_service.list_todos(repo, identity)]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo owned by the logged-in user. It always starts incomplete.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
        401: {"description": "Not authenticated"},
    },
)
def create_todo(
    payload: TodoDraft,
    identity: Identity = Depends(get_current_identity),
    repo: Repository = Depends(get_repo),
) -> TodoOut:
    created = todo_service.create_todo(repo, identity, payload)
    return TodoOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo by ID. Only its owner or an admin may read it.",
    responses=_ITEM_RESPONSES,
)
def get_todo(
    todo_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    identity: Identity = Depends(get_current_identity),
    repo: Repository = Depends(get_repo),
) -> TodoOut:
    return TodoOut(**todo_service.get_todo(repo, identity, todo_id))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Replace the editable fields (title, description, dueDate, category) of a Todo. "
        "Completion state and ownership are not changed."
    ),
    responses=_ITEM_RESPONSES,
)
def update_todo(
    *,
    todo_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    payload: TodoDraft,
    identity: Identity = Depends(get_current_identity),
    repo: Repository = Depends(get_repo),
) -> TodoOut:
    return TodoOut(**todo_service.update_todo(repo, identity, todo_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Delete Todo",
    description="Delete a Todo by ID. Only its owner or an admin may delete it.",
    responses=_ITEM_RESPONSES,
)
def delete_todo(
    todo_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    identity: Identity = Depends(get_current_identity),
    repo: Repository = Depends(get_repo),
) -> MessageOut:
    todo_service.delete_todo(repo, identity, todo_id)
    return MessageOut(message="Todo deleted successfully")


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}/toggle",
    response_model=TodoOut,
    summary="Toggle Todo completion",
    description="Flip the completed flag of a Todo.",
    responses=_ITEM_RESPONSES,
)
def toggle_todo(
    todo_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    identity: Identity = Depends(get_current_identity),
    repo: Repository = Depends(get_repo),
) -> TodoOut:
    return TodoOut(**todo_service.toggle_todo(repo, identity, todo_id))
