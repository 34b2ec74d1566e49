"""Schemas for task templates."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from ..models import TaskPriority
from .base import TaskboardModel


class TemplateCreate(TaskboardModel):
    name: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: UUID | None = None


class TemplateUpdate(TaskboardModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    priority: TaskPriority | None = None
    assignee_id: UUID | None = None


class TemplateResponse(TaskboardModel):
    id: UUID
    org_id: UUID
    name: str
    title: str
    description: str
    priority: TaskPriority
    assignee_id: UUID | None = None
    created_by: UUID
    created_at: datetime
    updated_at: datetime
