"""
Tests for the Notifier.

These tests verify:
1. Self-triggered events never produce a notification
2. Status-change notifications go to the task creator
3. Failures are swallowed and logged
4. The read side is scoped to the recipient
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from taskboard.core.errors import NotFound
from taskboard.models import Notification, NotificationType, Task
from taskboard.services import NotificationEvent, Notifier


@pytest.fixture
async def task(session, manager):
    task = Task(org_id=manager.org_id, title="Release 1.2", created_by=manager.id)
    session.add(task)
    await session.commit()
    return task


def event_for(task, recipient_id, triggered_by) -> NotificationEvent:
    return NotificationEvent(
        org_id=task.org_id,
        recipient_id=recipient_id,
        type=NotificationType.TASK_ASSIGNED,
        title="Task Assigned",
        message="hello",
        task_id=task.id,
        triggered_by=triggered_by,
    )


# =============================================================================
# TEST: WRITE SIDE
# =============================================================================


class TestNotify:

    async def test_creates_notification(self, session, task, manager, member):
        notification = await Notifier(session).notify(event_for(task, member.id, manager.id))

        assert notification is not None
        assert notification.read is False
        assert notification.recipient_id == member.id

    async def test_self_triggered_is_skipped(self, session, task, manager):
        notification = await Notifier(session).notify(event_for(task, manager.id, manager.id))

        assert notification is None
        count = (await session.execute(select(func.count()).select_from(Notification))).scalar_one()
        assert count == 0

    async def test_failure_returns_none_and_logs(self, session, task, manager, member, monkeypatch, caplog):
        def boom(self, event):
            raise RuntimeError("disk full")

        monkeypatch.setattr(Notifier, "_build", boom)

        assert await Notifier(session).notify(event_for(task, member.id, manager.id)) is None
        assert "Notification creation failed" in caplog.text

    async def test_status_changed_goes_to_creator(self, session, task, manager, member):
        notification = await Notifier(session).task_status_changed(task, "todo", "done", member.id)

        assert notification.recipient_id == manager.id
        assert notification.type == NotificationType.TASK_STATUS_CHANGED
        assert '"todo" to "done"' in notification.message

    async def test_status_changed_by_creator_is_skipped(self, session, task, manager):
        assert await Notifier(session).task_status_changed(task, "todo", "done", manager.id) is None

    async def test_mentioned(self, session, task, manager, member):
        notification = await Notifier(session).task_mentioned(task, member.id, manager.id)
        assert notification.type == NotificationType.TASK_MENTIONED
        assert task.title in notification.message


# =============================================================================
# TEST: READ SIDE
# =============================================================================


class TestReadSide:

    async def test_list_unread_and_mark_read(self, session, task, manager, member):
        notifier = Notifier(session)
        first = await notifier.task_assigned(task, member.id, manager.id)
        await notifier.task_mentioned(task, member.id, manager.id)

        items, total, unread = await notifier.list_for(member.id, member.org_id)
        assert (total, unread) == (2, 2)
        assert len(items) == 2

        await notifier.mark_read(first.id, member.id, member.org_id)
        assert await notifier.unread_count(member.id, member.org_id) == 1

        assert await notifier.mark_all_read(member.id, member.org_id) == 1
        assert await notifier.unread_count(member.id, member.org_id) == 0

    async def test_cannot_mark_someone_elses_notification(self, session, task, manager, member):
        notification = await Notifier(session).task_assigned(task, member.id, manager.id)

        with pytest.raises(NotFound):
            await Notifier(session).mark_read(notification.id, manager.id, manager.org_id)

    async def test_unknown_notification(self, session, member):
        with pytest.raises(NotFound):
            await Notifier(session).mark_read(uuid4(), member.id, member.org_id)
