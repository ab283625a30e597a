from __future__ import annotations

from typing import Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API clients as ``{"error", "message"}``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def error(self) -> str:
        return type(self).__name__


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class InvalidRole(ValidationFailed):
    default_message = "Invalid role. Role must be 'user' or 'admin'"


class ForbiddenSelfDemotion(ValidationFailed):
    default_message = "You cannot demote yourself from admin"


class Conflict(AppError):
    # Duplicate registrations are reported as plain bad requests
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized: Please log in to access this resource"


class InvalidCredentials(Unauthenticated):
    default_message = "Incorrect username/email or password"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden: You do not have permission to access this resource"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InternalError(AppError):
    pass
