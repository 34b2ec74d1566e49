"""Schemas for registration, login and the current user."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from ..models import UserRole
from .base import TaskboardModel


class RegisterRequest(TaskboardModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    org_name: str = Field(..., min_length=1, max_length=255)
    org_slug: str | None = Field(default=None, max_length=63)
    role: UserRole | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(TaskboardModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    org_slug: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class NotificationPrefs(TaskboardModel):
    email: bool = True
    in_app: bool = True


class UserResponse(TaskboardModel):
    """A user as exposed over the API. The password hash is never included."""

    id: UUID
    org_id: UUID
    name: str
    email: str
    role: UserRole
    notification_prefs: NotificationPrefs = NotificationPrefs()
    last_login_at: datetime | None = None
    created_at: datetime | None = None


class AuthResponse(TaskboardModel):
    token: str
    user: UserResponse
