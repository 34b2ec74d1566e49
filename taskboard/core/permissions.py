"""Role permission table and the access guard.

The table grants a *capability class* per role. Ownership predicates
narrow a capability to a specific task using the identity and the
resource. Everything here is pure and side-effect free.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Protocol
from uuid import UUID

from ..models import UserRole


# =============================================================================
# PERMISSION TABLE
# =============================================================================

_MEMBER = frozenset({
    "task.create",
    "task.read.own",
    "task.update.own",
    "task.delete.own",
    "notification.view.own",
    "notification.manage",
    "search.own",
    "dashboard.view.own",
})

_MANAGER = _MEMBER | frozenset({
    "task.read.all",
    "task.update.any",
    "task.assign",
    "report.view",
    "report.export",
    "search.all",
    "dashboard.view.all",
})

_ADMIN = _MANAGER | frozenset({
    "task.delete.any",
    "user.manage",
    "audit.view",
    "org.manage",
    "template.manage",
})

ROLE_PERMISSIONS: Mapping[UserRole, frozenset[str]] = MappingProxyType({
    UserRole.ADMIN: _ADMIN,
    UserRole.MANAGER: _MANAGER,
    UserRole.MEMBER: _MEMBER,
})


def get_permissions(role: UserRole | str) -> frozenset[str]:
    """Permission set for a role; unknown roles get nothing."""
    try:
        return ROLE_PERMISSIONS[UserRole(role)]
    except ValueError:
        return frozenset()


def has_permission(role: UserRole | str, action: str) -> bool:
    return action in get_permissions(role)


# =============================================================================
# IDENTITY & DECISIONS
# =============================================================================


@dataclass(frozen=True)
class Identity:
    """The acting user resolved from a bearer token. Never carries the password hash."""

    id: UUID
    org_id: UUID
    name: str
    email: str
    role: UserRole

    def can(self, action: str) -> bool:
        return has_permission(self.role, action)


class DenyReason(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    INSUFFICIENT_PERMISSION = "insufficient_permission"
    CROSS_ORG_ACCESS = "cross_org_access"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = AccessDecision(allowed=True)


def deny(reason: DenyReason) -> AccessDecision:
    return AccessDecision(allowed=False, reason=reason)


def authorize(
    identity: Identity | None,
    action: str,
    target_org_id: UUID | None = None,
) -> AccessDecision:
    """Gate a request: authentication, then role permission, then organization scope."""
    if identity is None:
        return deny(DenyReason.NOT_AUTHENTICATED)
    if not identity.can(action):
        return deny(DenyReason.INSUFFICIENT_PERMISSION)
    if target_org_id is not None and target_org_id != identity.org_id:
        return deny(DenyReason.CROSS_ORG_ACCESS)
    return ALLOW


# =============================================================================
# OWNERSHIP RULES
# =============================================================================


class OwnedTask(Protocol):
    org_id: UUID
    created_by: UUID
    assignee_id: UUID | None


def _is_creator(identity: Identity, task: OwnedTask) -> bool:
    return task.created_by == identity.id


def _is_assignee(identity: Identity, task: OwnedTask) -> bool:
    return task.assignee_id is not None and task.assignee_id == identity.id


def can_read_task(identity: Identity, task: OwnedTask) -> bool:
    if task.org_id != identity.org_id:
        return False
    if identity.can("task.read.all"):
        return True
    return identity.can("task.read.own") and (
        _is_creator(identity, task) or _is_assignee(identity, task)
    )


def can_update_task(identity: Identity, task: OwnedTask) -> bool:
    if task.org_id != identity.org_id:
        return False
    if identity.can("task.update.any"):
        return True
    return identity.can("task.update.own") and (
        _is_creator(identity, task) or _is_assignee(identity, task)
    )


def can_delete_task(identity: Identity, task: OwnedTask) -> bool:
    # admin: any task; manager and member: only tasks they created
    if task.org_id != identity.org_id:
        return False
    if identity.can("task.delete.any"):
        return True
    return identity.can("task.delete.own") and _is_creator(identity, task)
