"""Core application utilities."""

from .config import Settings, get_settings
from .database import (
    async_session_factory,
    close_db,
    engine,
    get_session,
    get_session_context,
    init_db,
)
from .dependencies import (
    ClientIPDep,
    CurrentIdentityDep,
    SessionDep,
    get_client_ip,
    get_current_identity,
    require_permission,
)
from .errors import (
    Conflict,
    Forbidden,
    InvalidAssignee,
    NotFound,
    TaskboardError,
    Unauthenticated,
    ValidationError,
)
from .permissions import (
    ROLE_PERMISSIONS,
    AccessDecision,
    DenyReason,
    Identity,
    authorize,
    can_delete_task,
    can_read_task,
    can_update_task,
    get_permissions,
    has_permission,
)
from .security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "engine",
    "async_session_factory",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
    # Dependencies
    "get_current_identity",
    "require_permission",
    "get_client_ip",
    "CurrentIdentityDep",
    "SessionDep",
    "ClientIPDep",
    # Errors
    "TaskboardError",
    "ValidationError",
    "InvalidAssignee",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "Conflict",
    # Permissions
    "ROLE_PERMISSIONS",
    "Identity",
    "AccessDecision",
    "DenyReason",
    "authorize",
    "get_permissions",
    "has_permission",
    "can_read_task",
    "can_update_task",
    "can_delete_task",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
]
