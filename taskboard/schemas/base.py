"""Base schemas and common types for the Taskboard API."""

from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# =============================================================================
# BASE SCHEMAS
# =============================================================================


class TaskboardModel(BaseModel):
    """Base model: ORM mode, camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# =============================================================================
# RESPONSE ENVELOPE
# =============================================================================


class ApiResponse(TaskboardModel, Generic[T]):
    """Every JSON response is shaped ``{success, data, error, meta}``."""

    success: bool = True
    data: T | None = None
    error: str | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def ok(cls, data: Any = None, meta: dict[str, Any] | None = None) -> "ApiResponse":
        return cls(success=True, data=data, error=None, meta=meta)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse":
        return cls(success=False, data=None, error=error)


# =============================================================================
# PAGINATION
# =============================================================================


def page_meta(page: int, limit: int, total: int, **extra: Any) -> dict[str, Any]:
    return {"page": page, "limit": limit, "total": total, **extra}


# =============================================================================
# COMMON REFERENCE SCHEMAS
# =============================================================================


class UserRef(TaskboardModel):
    """Minimal user reference for embedding in responses."""

    id: UUID
    name: str
    email: EmailStr


class MessageResponse(TaskboardModel):
    message: str
