"""
Tests for the recurring task job.

These tests verify:
1. Due recurring tasks get a fresh todo copy and the source advances
2. Copies are one-off tasks
3. One failing task does not stop the batch
4. A crash sends an alert and re-raises
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy import select

from taskboard.jobs import recurring_tasks
from taskboard.jobs.recurring_tasks import run_recurring_job, send_alert, seconds_until
from taskboard.models import RecurringFrequency, Task, TaskStatus
from taskboard.services.tasks import next_occurrence

NOW = datetime(2026, 4, 1, 0, 5, tzinfo=timezone.utc)


def naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


def recurring_task(user, title, frequency, next_date, **kwargs) -> Task:
    kwargs.setdefault("is_recurring", True)
    return Task(
        org_id=user.org_id,
        title=title,
        created_by=user.id,
        recurring_frequency=frequency,
        next_recurring_date=next_date,
        **kwargs,
    )


async def load_tasks(session_factory) -> list[Task]:
    async with session_factory() as session:
        result = await session.execute(select(Task).order_by(Task.created_at))
        return list(result.scalars().all())


# =============================================================================
# TEST: NEXT OCCURRENCE
# =============================================================================


class TestNextOccurrence:

    @pytest.mark.parametrize(
        "frequency,start,expected",
        [
            (RecurringFrequency.DAILY, datetime(2026, 2, 28), datetime(2026, 3, 1)),
            (RecurringFrequency.WEEKLY, datetime(2026, 12, 29), datetime(2027, 1, 5)),
            (RecurringFrequency.MONTHLY, datetime(2026, 1, 31), datetime(2026, 2, 28)),
            (RecurringFrequency.MONTHLY, datetime(2024, 1, 31), datetime(2024, 2, 29)),
            (RecurringFrequency.MONTHLY, datetime(2026, 12, 15, 9), datetime(2027, 1, 15, 9)),
        ],
    )
    def test_advances_one_period(self, frequency, start, expected):
        assert next_occurrence(frequency, start) == expected

    def test_accepts_string_frequency(self):
        assert next_occurrence("weekly", datetime(2026, 1, 1)) == datetime(2026, 1, 8)


class TestSecondsUntil:

    def test_later_today(self):
        now = datetime(2026, 4, 1, 10, 30, tzinfo=timezone.utc)
        assert seconds_until(12, now) == 90 * 60

    def test_rolls_over_to_tomorrow(self):
        now = datetime(2026, 4, 1, 0, 0, tzinfo=timezone.utc)
        assert seconds_until(0, now) == 24 * 3600


# =============================================================================
# TEST: JOB
# =============================================================================


class TestRecurringJob:

    async def test_due_task_is_copied_and_advanced(self, session, session_factory, manager, member):
        session.add(recurring_task(
            manager,
            "Weekly report",
            RecurringFrequency.WEEKLY,
            NOW - timedelta(hours=1),
            assignee_id=member.id,
            status=TaskStatus.DONE,
            tags=["ops"],
        ))
        await session.commit()

        results = await run_recurring_job(session_factory, now=NOW)

        assert results["created_count"] == 1
        assert results["errors"] == []
        assert results["completed_at"] is not None

        source, copy = await load_tasks(session_factory)
        assert naive(source.next_recurring_date) == naive(NOW + timedelta(days=7))

        assert copy.title == "Weekly report"
        assert copy.status == TaskStatus.TODO
        assert copy.assignee_id == member.id
        assert copy.tags == ["ops"]
        assert copy.org_id == source.org_id

    async def test_copy_is_not_recurring(self, session, session_factory, member):
        session.add(recurring_task(member, "Daily standup", RecurringFrequency.DAILY, NOW))
        await session.commit()

        await run_recurring_job(session_factory, now=NOW)
        await run_recurring_job(session_factory, now=NOW + timedelta(days=1))

        tasks = await load_tasks(session_factory)
        assert len(tasks) == 3
        assert [t.is_recurring for t in tasks] == [True, False, False]
        assert all(t.next_recurring_date is None for t in tasks[1:])

    async def test_future_and_disabled_tasks_are_skipped(self, session, session_factory, member):
        session.add_all([
            recurring_task(member, "Later", RecurringFrequency.DAILY, NOW + timedelta(hours=1)),
            recurring_task(
                member, "Off", RecurringFrequency.DAILY, NOW - timedelta(days=1), is_recurring=False
            ),
        ])
        await session.commit()

        results = await run_recurring_job(session_factory, now=NOW)

        assert results["created_count"] == 0
        assert len(await load_tasks(session_factory)) == 2

    async def test_failure_is_isolated_per_task(
        self, session, session_factory, member, monkeypatch, caplog
    ):
        session.add_all([
            recurring_task(member, "Broken", RecurringFrequency.MONTHLY, NOW - timedelta(days=2)),
            recurring_task(member, "Fine", RecurringFrequency.DAILY, NOW - timedelta(days=1)),
        ])
        await session.commit()

        def flaky_next_occurrence(frequency, start):
            if RecurringFrequency(frequency) == RecurringFrequency.MONTHLY:
                raise RuntimeError("calendar exploded")
            return next_occurrence(frequency, start)

        monkeypatch.setattr(recurring_tasks, "next_occurrence", flaky_next_occurrence)

        results = await run_recurring_job(session_factory, now=NOW)

        assert results["created_count"] == 1
        assert len(results["errors"]) == 1
        assert "calendar exploded" in results["errors"][0]
        assert "Recurring task" in caplog.text

        tasks = await load_tasks(session_factory)
        titles = sorted(t.title for t in tasks)
        assert titles == ["Broken", "Fine", "Fine"]

        broken = next(t for t in tasks if t.title == "Broken")
        assert naive(broken.next_recurring_date) == naive(NOW - timedelta(days=2))

    async def test_crash_sends_alert_and_reraises(self, monkeypatch):
        alerts = []

        async def fake_alert(title, message, severity="error", details=None):
            alerts.append((title, severity, details))

        def broken_factory():
            raise RuntimeError("database unreachable")

        monkeypatch.setattr(recurring_tasks, "send_alert", fake_alert)

        with pytest.raises(RuntimeError, match="database unreachable"):
            await run_recurring_job(broken_factory, now=NOW)

        assert len(alerts) == 1
        title, severity, details = alerts[0]
        assert title == "Recurring Task Job Failed"
        assert severity == "critical"
        assert details["error"] == "database unreachable"
        assert details["created_before_crash"] == 0


# =============================================================================
# TEST: ALERTING
# =============================================================================


class TestSendAlert:

    @pytest.fixture
    def webhook(self, monkeypatch):
        settings = SimpleNamespace(alert_webhook_url="https://hooks.example.com/alerts")
        monkeypatch.setattr(recurring_tasks, "get_settings", lambda: settings)

        captured = []
        real_client = httpx.AsyncClient

        def install(handler):
            def client_factory(*args, **kwargs):
                return real_client(transport=httpx.MockTransport(handler))

            monkeypatch.setattr(recurring_tasks.httpx, "AsyncClient", client_factory)

        return captured, install

    async def test_posts_payload(self, webhook):
        captured, install = webhook

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        install(handler)
        await send_alert("Job Failed", "boom", severity="critical", details={"k": "v"})

        assert len(captured) == 1
        assert str(captured[0].url) == "https://hooks.example.com/alerts"
        body = captured[0].content.decode()
        assert '"severity":"critical"' in body.replace(" ", "")
        assert '"source":"taskboard-recurring-tasks"' in body.replace(" ", "")

    async def test_webhook_errors_are_logged(self, webhook, caplog):
        _, install = webhook

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        install(handler)
        await send_alert("Job Failed", "boom")

        assert "Failed to send webhook alert" in caplog.text

    async def test_without_webhook_only_logs(self, monkeypatch, caplog):
        monkeypatch.setattr(
            recurring_tasks, "get_settings", lambda: SimpleNamespace(alert_webhook_url=None)
        )
        await send_alert("Job Failed", "boom", severity="critical")

        assert "[CRON ALERT] Job Failed: boom" in caplog.text
