"""Pydantic schemas for tasks, activity and comments."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from ..models import (
    ActivityType,
    RecurringFrequency,
    TaskPriority,
    TaskStatus,
)
from .base import TaskboardModel


# =============================================================================
# TASK SCHEMAS
# =============================================================================


class TaskCreate(TaskboardModel):
    """Request body for creating a task."""

    title: str | None = Field(default=None, max_length=200)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: UUID | None = None
    tags: list[str] = Field(default_factory=list)
    due_date: datetime | None = None
    is_recurring: bool = False
    recurring_frequency: RecurringFrequency | None = None


class TaskUpdate(TaskboardModel):
    """Partial patch. Only fields present in the request body are applied."""

    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: UUID | None = None
    tags: list[str] | None = None
    due_date: datetime | None = None
    is_recurring: bool | None = None
    recurring_frequency: RecurringFrequency | None = None


class TaskAssign(TaskboardModel):
    """Assign a task; ``assigneeId: null`` unassigns it."""

    assignee_id: UUID | None = None


class TaskFromTemplate(TaskboardModel):
    template_id: UUID


class TaskResponse(TaskboardModel):
    id: UUID
    org_id: UUID
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    assignee_id: UUID | None = None
    created_by: UUID
    tags: list[str] = Field(default_factory=list)
    due_date: datetime | None = None
    completed_at: datetime | None = None
    is_recurring: bool = False
    recurring_frequency: RecurringFrequency | None = None
    next_recurring_date: datetime | None = None
    template_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# ACTIVITY & COMMENTS
# =============================================================================


class CommentCreate(TaskboardModel):
    body: str | None = None


class ActivityResponse(TaskboardModel):
    id: UUID
    org_id: UUID
    task_id: UUID
    type: ActivityType
    actor_id: UUID
    comment_body: str | None = None
    mentions: list[UUID] = Field(default_factory=list)
    old_status: str | None = None
    new_status: str | None = None
    from_assignee_id: UUID | None = None
    to_assignee_id: UUID | None = None
    created_at: datetime
