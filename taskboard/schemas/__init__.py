"""Pydantic schemas for API request/response validation."""

from .audit import AuditLogEntry
from .auth import (
    AuthResponse,
    LoginRequest,
    NotificationPrefs,
    RegisterRequest,
    UserResponse,
)
from .base import (
    ApiResponse,
    MessageResponse,
    TaskboardModel,
    UserRef,
    page_meta,
)
from .notifications import (
    NotificationResponse,
    PreferencesUpdate,
    UnreadCountResponse,
)
from .reports import (
    CompletedPoint,
    DashboardSummary,
    PriorityCount,
    StatusCount,
)
from .tasks import (
    ActivityResponse,
    CommentCreate,
    TaskAssign,
    TaskCreate,
    TaskFromTemplate,
    TaskResponse,
    TaskUpdate,
)
from .templates import TemplateCreate, TemplateResponse, TemplateUpdate
from .users import RoleUpdate, UserCreate

__all__ = [
    # Base
    "TaskboardModel",
    "ApiResponse",
    "page_meta",
    "UserRef",
    "MessageResponse",
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "UserResponse",
    "NotificationPrefs",
    # Tasks
    "TaskCreate",
    "TaskUpdate",
    "TaskAssign",
    "TaskFromTemplate",
    "TaskResponse",
    "CommentCreate",
    "ActivityResponse",
    # Templates
    "TemplateCreate",
    "TemplateUpdate",
    "TemplateResponse",
    # Users
    "UserCreate",
    "RoleUpdate",
    # Notifications
    "NotificationResponse",
    "UnreadCountResponse",
    "PreferencesUpdate",
    # Audit
    "AuditLogEntry",
    # Reports
    "StatusCount",
    "PriorityCount",
    "CompletedPoint",
    "DashboardSummary",
]
