"""Schemas for in-app notifications."""

from datetime import datetime
from uuid import UUID

from ..models import NotificationType
from .base import TaskboardModel


class NotificationResponse(TaskboardModel):
    id: UUID
    org_id: UUID
    recipient_id: UUID
    type: NotificationType
    title: str
    message: str
    task_id: UUID | None = None
    triggered_by: UUID | None = None
    read: bool
    created_at: datetime


class UnreadCountResponse(TaskboardModel):
    unread_count: int


class PreferencesUpdate(TaskboardModel):
    email: bool | None = None
    in_app: bool | None = None
