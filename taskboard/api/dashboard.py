"""Dashboard summary for the current user."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from ..core import Identity, SessionDep, require_permission
from ..schemas import ApiResponse, DashboardSummary
from ..services import ReportingService

router = APIRouter(prefix="/orgs/{org_id}/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=ApiResponse[DashboardSummary])
async def get_dashboard_summary(
    org_id: UUID,
    identity: Annotated[Identity, Depends(require_permission("dashboard.view.own"))],
    session: SessionDep,
):
    """Task counts for the dashboard.

    Managers and admins see the whole organization; members only the
    tasks assigned to them.
    """
    stats = await ReportingService(session).dashboard_summary(identity)
    return ApiResponse.ok(DashboardSummary(
        total_tasks=stats.total_tasks,
        overdue_tasks=stats.overdue_tasks,
        by_status=stats.by_status,
        by_priority=stats.by_priority,
        completion_rate=stats.completion_rate,
    ))
