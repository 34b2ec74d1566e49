"""Reporting API routes: distributions, completion trend and CSV export."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ..core import Identity, SessionDep, require_permission
from ..models import utcnow
from ..schemas import (
    ApiResponse,
    CompletedPoint,
    PriorityCount,
    StatusCount,
)
from ..services import ReportingService

router = APIRouter(prefix="/orgs/{org_id}/reports", tags=["reports"])


def get_reporting_service(session: SessionDep) -> ReportingService:
    return ReportingService(session)


ReportingServiceDep = Annotated[ReportingService, Depends(get_reporting_service)]
ViewerDep = Annotated[Identity, Depends(require_permission("report.view"))]
ExporterDep = Annotated[Identity, Depends(require_permission("report.export"))]


@router.get("/distribution/status", response_model=ApiResponse[list[StatusCount]])
async def status_distribution(
    org_id: UUID,
    identity: ViewerDep,
    service: ReportingServiceDep,
):
    rows = await service.status_distribution(identity.org_id)
    return ApiResponse.ok([StatusCount(**row) for row in rows])


@router.get("/distribution/priority", response_model=ApiResponse[list[PriorityCount]])
async def priority_distribution(
    org_id: UUID,
    identity: ViewerDep,
    service: ReportingServiceDep,
):
    rows = await service.priority_distribution(identity.org_id)
    return ApiResponse.ok([PriorityCount(**row) for row in rows])


@router.get("/completed-over-time", response_model=ApiResponse[list[CompletedPoint]])
async def completed_over_time(
    org_id: UUID,
    identity: ViewerDep,
    service: ReportingServiceDep,
    days: int = Query(30, ge=1, le=365),
):
    rows = await service.completed_over_time(identity.org_id, days=days)
    return ApiResponse.ok([CompletedPoint(**row) for row in rows])


@router.get("/export/csv")
async def export_csv(
    org_id: UUID,
    identity: ExporterDep,
    service: ReportingServiceDep,
):
    """Download every task of the organization as a CSV attachment."""
    csv = await service.export_csv(identity.org_id)
    filename = f"tasks-export-{int(utcnow().timestamp() * 1000)}.csv"
    return Response(
        content=csv,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
