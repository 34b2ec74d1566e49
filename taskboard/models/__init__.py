"""SQLAlchemy ORM Models for Taskboard."""

from .base import Base, TimestampMixin, UUIDMixin, utcnow
from .models import (
    # Enums
    ActivityType,
    NotificationType,
    OrgPlan,
    RecurringFrequency,
    TaskPriority,
    TaskStatus,
    UserRole,
    # Organization & User
    Organization,
    User,
    # Tasks
    Task,
    TaskActivity,
    TaskTemplate,
    # Notifications
    Notification,
    # Audit
    AuditLog,
    default_notification_prefs,
)

__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    "utcnow",
    # Enums
    "OrgPlan",
    "UserRole",
    "TaskStatus",
    "TaskPriority",
    "RecurringFrequency",
    "ActivityType",
    "NotificationType",
    # Organization & User
    "Organization",
    "User",
    "default_notification_prefs",
    # Tasks
    "Task",
    "TaskActivity",
    "TaskTemplate",
    # Notifications
    "Notification",
    # Audit
    "AuditLog",
]
