"""API routes for the current user's notifications and preferences."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ..core import Identity, SessionDep, require_permission
from ..schemas import (
    ApiResponse,
    MessageResponse,
    NotificationPrefs,
    NotificationResponse,
    PreferencesUpdate,
    UnreadCountResponse,
    page_meta,
)
from ..services import Notifier, UserService

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notifier(session: SessionDep) -> Notifier:
    return Notifier(session)


NotifierDep = Annotated[Notifier, Depends(get_notifier)]
ViewerDep = Annotated[Identity, Depends(require_permission("notification.view.own"))]
ManagerDep = Annotated[Identity, Depends(require_permission("notification.manage"))]


@router.get("", response_model=ApiResponse[list[NotificationResponse]])
async def list_notifications(
    identity: ViewerDep,
    notifier: NotifierDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    items, total, unread = await notifier.list_for(
        identity.id, identity.org_id, limit=limit, offset=(page - 1) * limit
    )
    return ApiResponse.ok(
        [NotificationResponse.model_validate(n) for n in items],
        meta=page_meta(page, limit, total, unreadCount=unread),
    )


@router.get("/unread-count", response_model=ApiResponse[UnreadCountResponse])
async def unread_count(identity: ViewerDep, notifier: NotifierDep):
    count = await notifier.unread_count(identity.id, identity.org_id)
    return ApiResponse.ok(UnreadCountResponse(unread_count=count))


@router.put("/read-all", response_model=ApiResponse[MessageResponse])
async def mark_all_read(identity: ManagerDep, notifier: NotifierDep):
    await notifier.mark_all_read(identity.id, identity.org_id)
    return ApiResponse.ok(MessageResponse(message="All notifications marked as read"))


@router.put("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_read(
    notification_id: UUID,
    identity: ManagerDep,
    notifier: NotifierDep,
):
    notification = await notifier.mark_read(notification_id, identity.id, identity.org_id)
    return ApiResponse.ok(NotificationResponse.model_validate(notification))


@router.get("/preferences", response_model=ApiResponse[NotificationPrefs])
async def get_preferences(identity: ViewerDep, session: SessionDep):
    user = await UserService(session).get(identity, identity.id)
    return ApiResponse.ok(NotificationPrefs.model_validate(user.notification_prefs or {}))


@router.put("/preferences", response_model=ApiResponse[NotificationPrefs])
async def update_preferences(
    request: PreferencesUpdate,
    identity: ManagerDep,
    session: SessionDep,
):
    prefs = await UserService(session).update_preferences(
        identity, email=request.email, in_app=request.in_app
    )
    return ApiResponse.ok(NotificationPrefs.model_validate(prefs))
