"""Business logic services for Taskboard."""

from .audit import AuditEntry, AuditService
from .mentions import extract_mention_emails
from .notifications import NotificationEvent, Notifier
from .reporting import DashboardStats, ReportingService
from .tasks import (
    TaskCreateInput,
    TaskFilters,
    TaskService,
    next_occurrence,
)
from .templates import TemplateService
from .users import AuthResult, RegisterInput, UserService, identity_for

__all__ = [
    # Side effects
    "AuditService",
    "AuditEntry",
    "Notifier",
    "NotificationEvent",
    # Tasks (primary)
    "TaskService",
    "TaskCreateInput",
    "TaskFilters",
    "extract_mention_emails",
    "next_occurrence",
    # Templates & users
    "TemplateService",
    "UserService",
    "RegisterInput",
    "AuthResult",
    "identity_for",
    # Reporting
    "ReportingService",
    "DashboardStats",
]
