from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from ..auth import end_session, get_app_settings, get_current_identity, get_repo, get_sessions, start_session
from ..models import Identity
from ..repositories import Repository
from ..schemas import LoginRequest, MessageOut, RegisterRequest, UserOut
from ..services import account_service
from ..sessions import SessionStore
from ..settings import Settings

router = APIRouter(
    prefix="/api",
    tags=["auth"],
)


# PUBLIC_INTERFACE
@router.post(
    "/auth/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a regular user account and log it in.",
    responses={
        201: {"description": "User created and session cookie set"},
        400: {"description": "Validation error or duplicate username/email"},
    },
)
def register(
    payload: RegisterRequest,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    repo: Repository = Depends(get_repo),
    sessions: SessionStore = Depends(get_sessions),
) -> UserOut:
    user = account_service.register(repo, payload)
    start_session(response, settings, sessions, user)
    return UserOut(**user)


# PUBLIC_INTERFACE
@router.post(
    "/auth/login",
    response_model=UserOut,
    summary="Log in",
    description="Authenticate with a username (or email) and password; sets the session cookie.",
    responses={
        200: {"description": "Logged in"},
        400: {"description": "Validation error"},
        401: {"description": "Incorrect username/email or password"},
    },
)
def login(
    payload: LoginRequest,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    repo: Repository = Depends(get_repo),
    sessions: SessionStore = Depends(get_sessions),
) -> UserOut:
    user = account_service.authenticate(repo, payload.username, payload.password)
    start_session(response, settings, sessions, user)
    return UserOut(**user)


# PUBLIC_INTERFACE
@router.post(
    "/auth/logout",
    response_model=MessageOut,
    summary="Log out",
    description="Destroy the current session, if any, and clear the session cookie.",
)
def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    sessions: SessionStore = Depends(get_sessions),
) -> MessageOut:
    end_session(request, response, settings, sessions)
    return MessageOut(message="Logged out successfully")


# PUBLIC_INTERFACE
@router.get(
    "/user",
    response_model=UserOut,
    summary="Current user",
    responses={401: {"description": "Not authenticated"}},
)
def current_user(
    identity: Identity = Depends(get_current_identity),
) -> UserOut:
    """Return the logged-in user."""
    return UserOut(id=identity.id, username=identity.username, email=identity.email, role=identity.role)
