"""Audit service: append-only recording and querying of mutating actions."""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any, Sequence
from uuid import UUID

from pydantic_core import to_jsonable_python
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AuditLog, User

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """One mutating action, scoped to an organization and an acting user."""

    org_id: UUID
    user_id: UUID
    action: str
    resource: str
    resource_id: UUID | None = None
    before: dict[str, Any] = field(default_factory=dict)
    after: dict[str, Any] = field(default_factory=dict)
    ip_address: str | None = None

    def changes(self) -> dict[str, Any]:
        return to_jsonable_python({"before": self.before, "after": self.after})


class AuditService:
    """Service for audit logging.

    There is no update or delete method: entries are immutable
    once written.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(self, entry: AuditEntry) -> AuditLog | None:
        """Append one audit record, best-effort.

        The write runs in a SAVEPOINT so a failure can be rolled back on its
        own; it is logged and swallowed and never affects the caller's
        primary mutation.
        """
        try:
            async with self.session.begin_nested():
                log = self._build(entry)
                self.session.add(log)
            return log
        except Exception:
            logger.exception(
                f"Audit log write failed: action={entry.action} "
                f"resource={entry.resource} resource_id={entry.resource_id}"
            )
            return None

    def _build(self, entry: AuditEntry) -> AuditLog:
        return AuditLog(
            org_id=entry.org_id,
            user_id=entry.user_id,
            action=entry.action,
            resource=entry.resource,
            resource_id=entry.resource_id,
            changes=entry.changes(),
            ip_address=entry.ip_address,
        )

    async def query(
        self,
        org_id: UUID,
        action: str | None = None,
        resource: str | None = None,
        user_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[tuple[AuditLog, User | None]], int]:
        """Query the audit log with filters, newest first."""
        query = select(AuditLog).where(AuditLog.org_id == org_id)

        if action:
            query = query.where(AuditLog.action == action)
        if resource:
            query = query.where(AuditLog.resource == resource)
        if user_id:
            query = query.where(AuditLog.user_id == user_id)
        if start:
            query = query.where(AuditLog.timestamp >= start)
        if end:
            query = query.where(AuditLog.timestamp <= end)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar_one()

        rows_query = (
            query.add_columns(User)
            .outerjoin(User, (User.id == AuditLog.user_id) & (User.org_id == org_id))
            .order_by(AuditLog.timestamp.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(rows_query)

        return [(log, user) for log, user in result.all()], total
