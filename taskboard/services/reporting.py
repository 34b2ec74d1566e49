"""
Reporting: read-only aggregations over an organization's tasks.

Powers the report endpoints and the dashboard summary:
1. Status and priority distributions
2. Tasks completed per day over a trailing window
3. CSV export of every task in the organization
4. Per-identity dashboard summary
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from ..core.permissions import Identity
from ..models import Task, TaskStatus, User, utcnow


CSV_HEADER = (
    "ID,Title,Description,Status,Priority,Assignee,Created By,"
    "Due Date,Created At,Updated At"
)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def csv_quote(value: str | None) -> str:
    """Always quote a text field, doubling embedded quotes."""
    return '"' + (value or "").replace('"', '""') + '"'


@dataclass
class DashboardStats:
    total_tasks: int
    overdue_tasks: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    completion_rate: int


class ReportingService:
    """Aggregation queries, always scoped to a single organization."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def status_distribution(self, org_id: UUID) -> list[dict]:
        result = await self._session.execute(
            select(Task.status, func.count().label("count"))
            .where(Task.org_id == org_id)
            .group_by(Task.status)
        )
        return [{"status": row.status, "count": row.count} for row in result.all()]

    async def priority_distribution(self, org_id: UUID) -> list[dict]:
        result = await self._session.execute(
            select(Task.priority, func.count().label("count"))
            .where(Task.org_id == org_id)
            .group_by(Task.priority)
        )
        return [{"priority": row.priority, "count": row.count} for row in result.all()]

    async def completed_over_time(
        self, org_id: UUID, days: int = 30, now: datetime | None = None
    ) -> list[dict]:
        """Done tasks per UTC calendar day within the last ``days`` days, oldest day first."""
        since = (now or utcnow()) - timedelta(days=days)
        result = await self._session.execute(
            select(Task.completed_at).where(
                Task.org_id == org_id,
                Task.status == TaskStatus.DONE,
                Task.completed_at.is_not(None),
                Task.completed_at >= since,
            )
        )

        # Grouped here rather than in SQL so the UTC date is dialect independent
        per_day = Counter(
            _as_utc(completed_at).date().isoformat()
            for completed_at in result.scalars().all()
        )
        return [{"date": day, "count": per_day[day]} for day in sorted(per_day)]

    async def export_csv(self, org_id: UUID) -> str:
        """Render every task of the organization as CSV, newest first."""
        assignee = aliased(User)
        creator = aliased(User)
        result = await self._session.execute(
            select(Task, assignee.name, creator.name)
            .outerjoin(assignee, assignee.id == Task.assignee_id)
            .outerjoin(creator, creator.id == Task.created_by)
            .where(Task.org_id == org_id)
            .order_by(Task.created_at.desc())
        )

        rows = [CSV_HEADER]
        for task, assignee_name, creator_name in result.all():
            rows.append(",".join([
                str(task.id),
                csv_quote(task.title),
                csv_quote(task.description),
                task.status.value,
                task.priority.value,
                csv_quote(assignee_name) if assignee_name else "",
                csv_quote(creator_name) if creator_name else "",
                _as_utc(task.due_date).date().isoformat() if task.due_date else "",
                _as_utc(task.created_at).isoformat(),
                _as_utc(task.updated_at).isoformat(),
            ]))
        return "\n".join(rows)

    async def dashboard_summary(
        self, identity: Identity, now: datetime | None = None
    ) -> DashboardStats:
        """Counts for the dashboard. Without dashboard.view.all only tasks assigned to the caller count."""
        now = now or utcnow()
        base_filter = [Task.org_id == identity.org_id]
        if not identity.can("dashboard.view.all"):
            base_filter.append(Task.assignee_id == identity.id)

        status_result = await self._session.execute(
            select(Task.status, func.count().label("count"))
            .where(*base_filter)
            .group_by(Task.status)
        )
        by_status = {row.status.value: row.count for row in status_result.all()}

        priority_result = await self._session.execute(
            select(Task.priority, func.count().label("count"))
            .where(*base_filter)
            .group_by(Task.priority)
        )
        by_priority = {row.priority.value: row.count for row in priority_result.all()}

        overdue_result = await self._session.execute(
            select(func.count()).select_from(Task).where(
                *base_filter,
                Task.due_date < now,
                Task.status != TaskStatus.DONE,
            )
        )
        overdue_tasks = overdue_result.scalar_one()

        total_tasks = sum(by_status.values())
        completion_rate = (
            round(by_status.get(TaskStatus.DONE.value, 0) / total_tasks * 100)
            if total_tasks
            else 0
        )

        return DashboardStats(
            total_tasks=total_tasks,
            overdue_tasks=overdue_tasks,
            by_status=by_status,
            by_priority=by_priority,
            completion_rate=completion_rate,
        )
