"""Pydantic schemas for the audit log."""

from datetime import datetime
from typing import Any
from uuid import UUID

from .base import TaskboardModel, UserRef


class AuditLogEntry(TaskboardModel):
    """A single audit log entry."""

    id: UUID
    org_id: UUID
    user_id: UUID
    user: UserRef | None = None
    action: str
    resource: str
    resource_id: UUID | None = None
    changes: dict[str, Any]
    ip_address: str | None = None
    timestamp: datetime
