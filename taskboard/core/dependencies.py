"""FastAPI dependencies for authentication, authorization, and context."""

import logging
from typing import Annotated, Awaitable, Callable
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User, UserRole
from .database import get_session
from .errors import Forbidden, Unauthenticated, ValidationError
from .permissions import DenyReason, Identity, authorize
from .security import decode_token

logger = logging.getLogger(__name__)

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> Identity:
    """Dependency to resolve the acting identity from the bearer token."""
    if not credentials or not credentials.credentials:
        raise Unauthenticated("No token provided")

    payload = decode_token(credentials.credentials)
    if not payload:
        raise Unauthenticated("Invalid or expired token")

    if payload.type != "access":
        raise Unauthenticated("Invalid token type")

    try:
        user_id = UUID(payload.sub)
    except ValueError:
        raise Unauthenticated("Invalid token")

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise Unauthenticated("User not found")

    return Identity(
        id=user.id,
        org_id=user.org_id,
        name=user.name,
        email=user.email,
        role=UserRole(user.role),
    )


def _path_org_id(request: Request) -> UUID | None:
    raw = request.path_params.get("org_id")
    if raw is None:
        return None
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except ValueError:
        raise ValidationError("Invalid organization ID format")


def require_permission(action: str) -> Callable[..., Awaitable[Identity]]:
    """Dependency factory: authenticate, check the role table, then the org in the path."""

    async def _check(
        request: Request,
        identity: Annotated[Identity, Depends(get_current_identity)],
    ) -> Identity:
        decision = authorize(identity, action, _path_org_id(request))
        if decision.reason == DenyReason.NOT_AUTHENTICATED:
            raise Unauthenticated()
        if decision.reason == DenyReason.INSUFFICIENT_PERMISSION:
            raise Forbidden("Insufficient permissions")
        if decision.reason == DenyReason.CROSS_ORG_ACCESS:
            logger.warning(
                f"Cross-organization access denied: user={identity.id} "
                f"path={request.url.path}"
            )
            raise Forbidden("Access denied to this organization")
        return identity

    return _check


def get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# Type aliases for cleaner dependency injection
SessionDep = Annotated[AsyncSession, Depends(get_session)]
CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]
ClientIPDep = Annotated[str | None, Depends(get_client_ip)]
