"""
Notifier: in-app notification records for task events.

Notification creation is a non-critical side channel:
1. A recipient is never notified about their own action
2. Failures are logged and swallowed, never propagated
3. Recipient preferences are not consulted; the in-app record is always
   written and ``notification_prefs`` only gates future delivery channels
"""

from dataclasses import dataclass
import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFound
from ..models import Notification, NotificationType, Task

logger = logging.getLogger(__name__)


@dataclass
class NotificationEvent:
    org_id: UUID
    recipient_id: UUID
    type: NotificationType
    title: str
    message: str
    triggered_by: UUID
    task_id: UUID | None = None


class Notifier:
    """Creates and reads notification records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # WRITE SIDE
    # =========================================================================

    async def notify(self, event: NotificationEvent) -> Notification | None:
        """Create one notification, best-effort. Returns None when skipped or failed."""
        if event.recipient_id == event.triggered_by:
            return None

        try:
            async with self.session.begin_nested():
                notification = self._build(event)
                self.session.add(notification)
            return notification
        except Exception:
            logger.exception(
                f"Notification creation failed: type={event.type.value} "
                f"recipient={event.recipient_id} task={event.task_id}"
            )
            return None

    def _build(self, event: NotificationEvent) -> Notification:
        return Notification(
            org_id=event.org_id,
            recipient_id=event.recipient_id,
            type=event.type,
            title=event.title,
            message=event.message,
            task_id=event.task_id,
            triggered_by=event.triggered_by,
            read=False,
        )

    async def task_assigned(
        self, task: Task, assignee_id: UUID, assigned_by: UUID
    ) -> Notification | None:
        return await self.notify(NotificationEvent(
            org_id=task.org_id,
            recipient_id=assignee_id,
            type=NotificationType.TASK_ASSIGNED,
            title="Task Assigned",
            message=f'You have been assigned to task "{task.title}"',
            task_id=task.id,
            triggered_by=assigned_by,
        ))

    async def task_status_changed(
        self, task: Task, old_status: str, new_status: str, changed_by: UUID
    ) -> Notification | None:
        # Recipient is the task creator
        if task.created_by == changed_by:
            return None
        return await self.notify(NotificationEvent(
            org_id=task.org_id,
            recipient_id=task.created_by,
            type=NotificationType.TASK_STATUS_CHANGED,
            title="Task Status Updated",
            message=(
                f'Task "{task.title}" status changed from '
                f'"{old_status}" to "{new_status}"'
            ),
            task_id=task.id,
            triggered_by=changed_by,
        ))

    async def task_mentioned(
        self, task: Task, mentioned_user_id: UUID, mentioned_by: UUID
    ) -> Notification | None:
        return await self.notify(NotificationEvent(
            org_id=task.org_id,
            recipient_id=mentioned_user_id,
            type=NotificationType.TASK_MENTIONED,
            title="You were mentioned",
            message=f'You were mentioned in a comment on task "{task.title}"',
            task_id=task.id,
            triggered_by=mentioned_by,
        ))

    # =========================================================================
    # READ SIDE
    # =========================================================================

    def _recipient_filter(self, recipient_id: UUID, org_id: UUID):
        return (
            Notification.recipient_id == recipient_id,
            Notification.org_id == org_id,
        )

    async def list_for(
        self,
        recipient_id: UUID,
        org_id: UUID,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[Sequence[Notification], int, int]:
        """Return (page of notifications newest first, total, unread count)."""
        where = self._recipient_filter(recipient_id, org_id)

        total = (await self.session.execute(
            select(func.count()).select_from(Notification).where(*where)
        )).scalar_one()
        unread = await self.unread_count(recipient_id, org_id)

        result = await self.session.execute(
            select(Notification)
            .where(*where)
            .order_by(Notification.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return result.scalars().all(), total, unread

    async def unread_count(self, recipient_id: UUID, org_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Notification)
            .where(*self._recipient_filter(recipient_id, org_id), Notification.read.is_(False))
        )
        return result.scalar_one()

    async def mark_read(
        self, notification_id: UUID, recipient_id: UUID, org_id: UUID
    ) -> Notification:
        result = await self.session.execute(
            select(Notification).where(
                Notification.id == notification_id,
                *self._recipient_filter(recipient_id, org_id),
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotFound("Notification not found")

        notification.read = True
        await self.session.flush()
        return notification

    async def mark_all_read(self, recipient_id: UUID, org_id: UUID) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(*self._recipient_filter(recipient_id, org_id), Notification.read.is_(False))
            .values(read=True)
        )
        return result.rowcount or 0
