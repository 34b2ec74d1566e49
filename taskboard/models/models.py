"""SQLAlchemy ORM models for Taskboard.

Every table except ``organizations`` carries ``org_id``; services always
filter on it.
"""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDMixin, utcnow


def _enum(enum_cls: type[PyEnum], name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda x: [e.value for e in x])


# =============================================================================
# ENUMS
# =============================================================================


class OrgPlan(str, PyEnum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class UserRole(str, PyEnum):
    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"


class TaskStatus(str, PyEnum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"


class TaskPriority(str, PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RecurringFrequency(str, PyEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ActivityType(str, PyEnum):
    COMMENT = "comment"
    STATUS_CHANGED = "status_changed"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"


class NotificationType(str, PyEnum):
    TASK_ASSIGNED = "task_assigned"
    TASK_STATUS_CHANGED = "task_status_changed"
    TASK_MENTIONED = "task_mentioned"


def default_org_settings() -> dict:
    return {"timezone": "UTC", "language": "en"}


def default_notification_prefs() -> dict:
    return {"email": True, "in_app": True}


# =============================================================================
# ORGANIZATION & USER MODELS
# =============================================================================


class Organization(Base, UUIDMixin, TimestampMixin):
    """Root tenant boundary."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(63), unique=True, nullable=False)
    plan: Mapped[OrgPlan] = mapped_column(
        _enum(OrgPlan, "org_plan"), default=OrgPlan.FREE, nullable=False
    )
    settings: Mapped[dict] = mapped_column(JSON, default=default_org_settings)


class User(Base, UUIDMixin, TimestampMixin):
    """A user belongs to exactly one organization."""

    __tablename__ = "users"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        _enum(UserRole, "user_role"), default=UserRole.MEMBER, nullable=False
    )
    notification_prefs: Mapped[dict] = mapped_column(
        JSON, default=default_notification_prefs
    )
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("org_id", "email"),
        Index("idx_users_email", "email"),
    )


# =============================================================================
# TASK MODELS
# =============================================================================


class Task(Base, UUIDMixin, TimestampMixin):
    """A unit of work inside an organization."""

    __tablename__ = "tasks"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[TaskStatus] = mapped_column(
        _enum(TaskStatus, "task_status"), default=TaskStatus.TODO, nullable=False
    )
    priority: Mapped[TaskPriority] = mapped_column(
        _enum(TaskPriority, "task_priority"),
        default=TaskPriority.MEDIUM,
        nullable=False,
    )
    assignee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    created_by: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    due_date: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Recurrence
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    recurring_frequency: Mapped[RecurringFrequency | None] = mapped_column(
        _enum(RecurringFrequency, "recurring_frequency"), nullable=True
    )
    next_recurring_date: Mapped[datetime | None] = mapped_column(nullable=True)

    template_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("task_templates.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("idx_tasks_org_status", "org_id", "status"),
        Index("idx_tasks_org_assignee", "org_id", "assignee_id"),
        Index("idx_tasks_recurring", "is_recurring", "next_recurring_date"),
    )


class TaskActivity(Base, UUIDMixin):
    """Append-only log of task-level events."""

    __tablename__ = "task_activities"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id"), nullable=False
    )
    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[ActivityType] = mapped_column(
        _enum(ActivityType, "activity_type"), nullable=False
    )
    # Historical references carry no foreign key so they outlive the user
    actor_id: Mapped[UUID] = mapped_column(nullable=False)

    # type == comment
    comment_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    mentions: Mapped[list[str]] = mapped_column(JSON, default=list)

    # type == status_changed
    old_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # type in (assigned, unassigned)
    from_assignee_id: Mapped[UUID | None] = mapped_column(nullable=True)
    to_assignee_id: Mapped[UUID | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_task_activities_task_time", "org_id", "task_id", "created_at"),
    )


class TaskTemplate(Base, UUIDMixin, TimestampMixin):
    """Reusable blueprint for creating tasks."""

    __tablename__ = "task_templates"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    priority: Mapped[TaskPriority] = mapped_column(
        _enum(TaskPriority, "task_priority"),
        default=TaskPriority.MEDIUM,
        nullable=False,
    )
    assignee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    created_by: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    __table_args__ = (UniqueConstraint("org_id", "name"),)


# =============================================================================
# NOTIFICATIONS
# =============================================================================


class Notification(Base, UUIDMixin):
    """In-app notification record."""

    __tablename__ = "notifications"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id"), nullable=False
    )
    recipient_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        _enum(NotificationType, "notification_type"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    task_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True
    )
    triggered_by: Mapped[UUID | None] = mapped_column(nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_notifications_recipient_time", "recipient_id", "created_at"),
        Index("idx_notifications_recipient_read", "recipient_id", "read"),
    )


# =============================================================================
# AUDIT
# =============================================================================


class AuditLog(Base, UUIDMixin):
    """Append-only audit trail. The application never updates or deletes rows."""

    __tablename__ = "audit_logs"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    resource: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_id: Mapped[UUID | None] = mapped_column(nullable=True)
    changes: Mapped[dict] = mapped_column(JSON, default=dict)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_logs_org_time", "org_id", "timestamp"),
        Index("idx_audit_logs_org_resource", "org_id", "resource"),
    )
