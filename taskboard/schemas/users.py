"""Schemas for organization user management."""

from pydantic import EmailStr, Field, field_validator

from ..models import UserRole
from .base import TaskboardModel


class UserCreate(TaskboardModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.MEMBER

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class RoleUpdate(TaskboardModel):
    role: UserRole
