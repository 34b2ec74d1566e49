"""API routes for the audit log."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ..core import Identity, SessionDep, require_permission
from ..schemas import ApiResponse, AuditLogEntry, UserRef, page_meta
from ..services import AuditService

router = APIRouter(prefix="/orgs/{org_id}/audit-logs", tags=["audit"])


def get_audit_service(session: SessionDep) -> AuditService:
    return AuditService(session)


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]


@router.get("", response_model=ApiResponse[list[AuditLogEntry]])
async def get_audit_logs(
    org_id: UUID,
    identity: Annotated[Identity, Depends(require_permission("audit.view"))],  # Admins only
    service: AuditServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    action: str | None = None,
    resource: str | None = None,
    user_id: UUID | None = Query(None, alias="userId"),
    start: datetime | None = Query(None, alias="from"),
    end: datetime | None = Query(None, alias="to"),
):
    """Query the audit log with filters, newest first."""
    rows, total = await service.query(
        org_id=identity.org_id,
        action=action,
        resource=resource,
        user_id=user_id,
        start=start,
        end=end,
        limit=limit,
        offset=(page - 1) * limit,
    )

    return ApiResponse.ok(
        [
            AuditLogEntry(
                id=log.id,
                org_id=log.org_id,
                user_id=log.user_id,
                user=UserRef(
                    id=user.id,
                    name=user.name,
                    email=user.email,
                ) if user else None,
                action=log.action,
                resource=log.resource,
                resource_id=log.resource_id,
                changes=log.changes or {},
                ip_address=log.ip_address,
                timestamp=log.timestamp,
            )
            for log, user in rows
        ],
        meta=page_meta(page, limit, total),
    )
