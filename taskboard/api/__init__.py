"""API routes for Taskboard."""

from fastapi import APIRouter

from .audit import router as audit_router
from .auth import router as auth_router
from .dashboard import router as dashboard_router
from .notifications import router as notifications_router
from .reports import router as reports_router
from .tasks import router as tasks_router
from .templates import router as templates_router
from .users import router as users_router

# Main API router
api_router = APIRouter()

# Auth routes (register, login, me)
api_router.include_router(auth_router)

# Organization-scoped routes: /orgs/{org_id}/...
api_router.include_router(tasks_router)
api_router.include_router(templates_router)
api_router.include_router(users_router)
api_router.include_router(dashboard_router)
api_router.include_router(reports_router)
api_router.include_router(audit_router)

# Per-user routes
api_router.include_router(notifications_router)

__all__ = ["api_router"]
