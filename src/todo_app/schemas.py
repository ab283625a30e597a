from __future__ import annotations

from datetime import date
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import Category, Role

DueDateInput = Union[date, str]


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[str]:
    """
    Normalize due_date input to an ISO calendar date string (YYYY-MM-DD).
    - None or a blank string means "no due date".
    - A date is formatted as-is.
    - A string must parse with date.fromisoformat.
    """
    if value is None:
        return None

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s).isoformat()
        except ValueError as e:
            raise ValueError("Invalid dueDate format. Use an ISO8601 calendar date (e.g., '2025-01-31').") from e

    raise ValueError("Invalid type for dueDate; expected an ISO8601 date string.")


class _CamelModel(BaseModel):
    """Base for API models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class TodoDraft(_CamelModel):
    """
    Schema for creating or replacing a Todo's editable fields.
    Ownership and completion are never taken from the client.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "dueDate": "2025-02-01",
                "category": "Urgent",
            }
        },
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1)
    description: Optional[str] = Field(default=None, description="Optional detailed description", max_length=500)
    due_date: Optional[str] = Field(default=None, description="Optional ISO8601 calendar date")
    category: Category = Field(default=Category.NON_URGENT, description="'Urgent' or 'Non-Urgent'")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..100 length.
        """
        s = v.strip()
        if not (1 <= len(s) <= 100):
            raise ValueError("Title must be between 1 and 100 characters")
        return s

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[str]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TodoOut(_CamelModel):
    """
    Schema returned by the API for a Todo item.
    """

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str
    description: Optional[str] = None
    due_date: Optional[str] = None
    category: Category
    completed: bool
    user_id: int = Field(..., description="Id of the owning user")
    username: str = Field(..., description="Owner's username at creation time")


# PUBLIC_INTERFACE
class UserOut(_CamelModel):
    """A user as exposed by the API; the password hash is never included."""

    id: int
    username: str
    email: str
    role: Role


# PUBLIC_INTERFACE
class RegisterRequest(_CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "username": "alice",
                "email": "alice@example.com",
                "password": "correct-horse",
                "confirmPassword": "correct-horse",
            }
        },
    )

    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, description="At least 8 characters")
    confirm_password: str = Field(..., min_length=1)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("Username is required")
        return s

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    """Credentials for login; ``username`` may also be the account's email."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# PUBLIC_INTERFACE
class RoleUpdate(BaseModel):
    role: str = Field(..., description="'user' or 'admin'")


class MessageOut(BaseModel):
    message: str
