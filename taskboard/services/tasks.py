"""
Task Mutation Service: the single write path for tasks.

Every operation follows the same sequence:
1. Load the task scoped to the acting identity's organization
2. Check the ownership rule for the identity and the task
3. Apply the primary mutation and flush it
4. Append activity records
5. Record one audit entry, then send notifications (both best-effort)

Cross-organization lookups behave exactly like missing rows, so a caller
can never learn whether a task id exists in another organization.
"""

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
from typing import Any, Mapping, Sequence
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import Forbidden, InvalidAssignee, NotFound, ValidationError
from ..core.permissions import (
    Identity,
    can_delete_task,
    can_read_task,
    can_update_task,
)
from ..models import (
    ActivityType,
    RecurringFrequency,
    Task,
    TaskActivity,
    TaskPriority,
    TaskStatus,
    TaskTemplate,
    User,
    utcnow,
)
from .audit import AuditEntry, AuditService
from .mentions import extract_mention_emails
from .notifications import Notifier

logger = logging.getLogger(__name__)


# Fields a partial update may touch
UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "status",
    "priority",
    "assignee_id",
    "tags",
    "due_date",
    "is_recurring",
    "recurring_frequency",
})

_ENUM_FIELDS = {
    "status": TaskStatus,
    "priority": TaskPriority,
    "recurring_frequency": RecurringFrequency,
}


def next_occurrence(frequency: RecurringFrequency | str, start: datetime) -> datetime:
    """Advance ``start`` by one recurrence period.

    Monthly recurrence keeps the day of month, clamped to the length of the
    target month (Jan 31 -> Feb 28/29).
    """
    frequency = RecurringFrequency(frequency)
    if frequency == RecurringFrequency.DAILY:
        return start + timedelta(days=1)
    if frequency == RecurringFrequency.WEEKLY:
        return start + timedelta(days=7)

    year, month = (start.year + 1, 1) if start.month == 12 else (start.year, start.month + 1)
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class TaskCreateInput:
    """Input for creating a task."""
    title: str | None
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: UUID | None = None
    tags: list[str] = field(default_factory=list)
    due_date: datetime | None = None
    is_recurring: bool = False
    recurring_frequency: RecurringFrequency | None = None


@dataclass
class TaskFilters:
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: UUID | None = None
    search: str | None = None


def _clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    if len(title) > 200:
        raise ValidationError("Title must be at most 200 characters")
    return title


# =============================================================================
# TASK SERVICE
# =============================================================================


class TaskService:
    """
    Mutations and reads for tasks, comments and task activity.

    Constructed per request. Side effects go through AuditService and
    Notifier, which isolate their own failures.
    """

    def __init__(self, session: AsyncSession, ip_address: str | None = None):
        self.session = session
        self.ip_address = ip_address
        self.audit = AuditService(session)
        self.notifier = Notifier(session)

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def _load(self, identity: Identity, task_id: UUID) -> Task:
        result = await self.session.execute(
            select(Task).where(Task.id == task_id, Task.org_id == identity.org_id)
        )
        task = result.scalar_one_or_none()
        if not task:
            raise NotFound("Task not found")
        return task

    async def _load_readable(self, identity: Identity, task_id: UUID) -> Task:
        task = await self._load(identity, task_id)
        if not can_read_task(identity, task):
            raise Forbidden("You do not have access to this task")
        return task

    async def _ensure_assignee(self, identity: Identity, assignee_id: UUID) -> None:
        result = await self.session.execute(
            select(User.id).where(User.id == assignee_id, User.org_id == identity.org_id)
        )
        if result.scalar_one_or_none() is None:
            raise InvalidAssignee()

    async def _record_activities(
        self, identity: Identity, task: Task, activities: list[dict[str, Any]]
    ) -> list[TaskActivity]:
        """Append activity rows with strictly increasing timestamps, preserving order."""
        base = utcnow()
        records = []
        for offset, values in enumerate(activities):
            record = TaskActivity(
                org_id=task.org_id,
                task_id=task.id,
                actor_id=identity.id,
                created_at=base + timedelta(microseconds=offset),
                **values,
            )
            self.session.add(record)
            records.append(record)
        if records:
            await self.session.flush()
        return records

    def _assignment_activity(
        self, from_id: UUID | None, to_id: UUID | None
    ) -> dict[str, Any]:
        return {
            "type": ActivityType.ASSIGNED if to_id else ActivityType.UNASSIGNED,
            "from_assignee_id": from_id,
            "to_assignee_id": to_id,
        }

    async def _audit(
        self,
        identity: Identity,
        action: str,
        resource_id: UUID,
        before: dict[str, Any],
        after: dict[str, Any],
        resource: str = "task",
    ) -> None:
        await self.audit.record(AuditEntry(
            org_id=identity.org_id,
            user_id=identity.id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            before=before,
            after=after,
            ip_address=self.ip_address,
        ))

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create(
        self,
        identity: Identity,
        data: TaskCreateInput,
        template_id: UUID | None = None,
    ) -> Task:
        """Create a task, its initial assignment activity, audit entry and notification."""
        title = _clean_title(data.title)

        if data.assignee_id is not None:
            # Template assignees were chosen by a template manager
            if template_id is None and not identity.can("task.assign"):
                raise Forbidden("You are not allowed to assign tasks")
            await self._ensure_assignee(identity, data.assignee_id)

        now = utcnow()
        next_recurring_date = None
        if data.is_recurring and data.recurring_frequency:
            next_recurring_date = next_occurrence(data.recurring_frequency, now)

        task = Task(
            org_id=identity.org_id,
            title=title,
            description=data.description or "",
            status=data.status,
            priority=data.priority,
            assignee_id=data.assignee_id,
            created_by=identity.id,
            tags=list(data.tags or []),
            due_date=data.due_date,
            completed_at=now if data.status == TaskStatus.DONE else None,
            is_recurring=data.is_recurring,
            recurring_frequency=data.recurring_frequency,
            next_recurring_date=next_recurring_date,
            template_id=template_id,
        )
        self.session.add(task)
        await self.session.flush()

        if task.assignee_id:
            await self._record_activities(
                identity, task, [self._assignment_activity(None, task.assignee_id)]
            )

        after = {
            "title": task.title,
            "status": task.status,
            "priority": task.priority,
            "assignee_id": task.assignee_id,
        }
        if template_id:
            after["template_id"] = template_id
        await self._audit(
            identity,
            "create_from_template" if template_id else "create",
            task.id,
            before={},
            after=after,
        )

        if task.assignee_id:
            await self.notifier.task_assigned(task, task.assignee_id, identity.id)

        logger.info(f"Task created: id={task.id} org={task.org_id} by={identity.id}")
        return task

    async def create_from_template(self, identity: Identity, template_id: UUID) -> Task:
        result = await self.session.execute(
            select(TaskTemplate).where(
                TaskTemplate.id == template_id,
                TaskTemplate.org_id == identity.org_id,
            )
        )
        template = result.scalar_one_or_none()
        if not template:
            raise NotFound("Template not found")

        data = TaskCreateInput(
            title=template.title,
            description=template.description,
            priority=template.priority,
            assignee_id=template.assignee_id,
        )
        return await self.create(identity, data, template_id=template.id)

    # =========================================================================
    # READ
    # =========================================================================

    async def get(self, identity: Identity, task_id: UUID) -> Task:
        return await self._load_readable(identity, task_id)

    async def list(
        self,
        identity: Identity,
        filters: TaskFilters | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Task], int]:
        """List tasks, newest first. Without task.read.all only own tasks are visible."""
        filters = filters or TaskFilters()
        query = select(Task).where(Task.org_id == identity.org_id)

        if not identity.can("task.read.all"):
            query = query.where(
                or_(Task.created_by == identity.id, Task.assignee_id == identity.id)
            )

        if filters.status:
            query = query.where(Task.status == filters.status)
        if filters.priority:
            query = query.where(Task.priority == filters.priority)
        if filters.assignee_id:
            query = query.where(Task.assignee_id == filters.assignee_id)
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(Task.title.ilike(pattern), Task.description.ilike(pattern))
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar_one()

        query = (
            query.order_by(Task.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return result.scalars().all(), total

    # =========================================================================
    # UPDATE
    # =========================================================================

    async def update(
        self, identity: Identity, task_id: UUID, patch: Mapping[str, Any]
    ) -> Task:
        """Apply a partial update.

        ``patch`` holds only the fields the caller explicitly provided;
        absent keys are left untouched and ``None`` clears a nullable field.
        """
        task = await self._load(identity, task_id)
        if not can_update_task(identity, task):
            raise Forbidden("You do not have permission to update this task")

        patch = {k: v for k, v in patch.items() if k in UPDATABLE_FIELDS}
        for key, enum_cls in _ENUM_FIELDS.items():
            if patch.get(key) is not None:
                patch[key] = enum_cls(patch[key])
        if "title" in patch:
            patch["title"] = _clean_title(patch["title"])
        for required in ("status", "priority", "is_recurring"):
            if required in patch and patch[required] is None:
                raise ValidationError(f"{required} cannot be null")
        if "description" in patch and patch["description"] is None:
            patch["description"] = ""
        if "tags" in patch and patch["tags"] is None:
            patch["tags"] = []

        old_status = task.status
        old_assignee_id = task.assignee_id
        assignee_changed = (
            "assignee_id" in patch and patch["assignee_id"] != old_assignee_id
        )
        if assignee_changed:
            if not identity.can("task.assign"):
                raise Forbidden("You are not allowed to assign tasks")
            if patch["assignee_id"] is not None:
                await self._ensure_assignee(identity, patch["assignee_id"])

        # Diff before applying
        changed = {k: v for k, v in patch.items() if getattr(task, k) != v}
        before = {k: getattr(task, k) for k in changed}

        for key, value in changed.items():
            setattr(task, key, value)

        status_changed = "status" in changed
        if status_changed:
            if task.status == TaskStatus.DONE:
                task.completed_at = utcnow()
            elif old_status == TaskStatus.DONE:
                task.completed_at = None

        if "is_recurring" in changed or "recurring_frequency" in changed:
            task.next_recurring_date = (
                next_occurrence(task.recurring_frequency, utcnow())
                if task.is_recurring and task.recurring_frequency
                else None
            )

        await self.session.flush()

        activities = []
        if status_changed:
            activities.append({
                "type": ActivityType.STATUS_CHANGED,
                "old_status": old_status.value,
                "new_status": task.status.value,
            })
        if assignee_changed:
            activities.append(
                self._assignment_activity(old_assignee_id, task.assignee_id)
            )
        await self._record_activities(identity, task, activities)

        await self._audit(identity, "update", task.id, before=before, after=changed)

        if assignee_changed and task.assignee_id:
            await self.notifier.task_assigned(task, task.assignee_id, identity.id)
        if status_changed:
            await self.notifier.task_status_changed(
                task, old_status.value, task.status.value, identity.id
            )

        return task

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete(self, identity: Identity, task_id: UUID) -> None:
        task = await self._load(identity, task_id)
        if not can_delete_task(identity, task):
            raise Forbidden("You do not have permission to delete this task")

        before = {"title": task.title, "status": task.status}
        deleted_id = task.id

        await self.session.execute(
            delete(TaskActivity).where(
                TaskActivity.task_id == deleted_id,
                TaskActivity.org_id == identity.org_id,
            )
        )
        await self.session.delete(task)
        await self.session.flush()

        await self._audit(identity, "delete", deleted_id, before=before, after={})
        logger.info(f"Task deleted: id={deleted_id} org={identity.org_id} by={identity.id}")

    # =========================================================================
    # ASSIGN
    # =========================================================================

    async def assign(
        self, identity: Identity, task_id: UUID, assignee_id: UUID | None
    ) -> Task:
        """Assign or unassign. Re-assigning the current assignee is audited but otherwise a no-op."""
        if not identity.can("task.assign"):
            raise Forbidden("You are not allowed to assign tasks")

        task = await self._load(identity, task_id)
        if assignee_id is not None:
            await self._ensure_assignee(identity, assignee_id)

        old_assignee_id = task.assignee_id
        changed = assignee_id != old_assignee_id

        if changed:
            task.assignee_id = assignee_id
            await self.session.flush()
            await self._record_activities(
                identity, task, [self._assignment_activity(old_assignee_id, assignee_id)]
            )

        await self._audit(
            identity,
            "assign",
            task.id,
            before={"assignee_id": old_assignee_id},
            after={"assignee_id": assignee_id},
        )

        if changed and assignee_id is not None:
            await self.notifier.task_assigned(task, assignee_id, identity.id)

        return task

    # =========================================================================
    # COMMENTS & ACTIVITY
    # =========================================================================

    async def add_comment(
        self, identity: Identity, task_id: UUID, body: str | None
    ) -> TaskActivity:
        """Add a comment; resolvable @email mentions are notified."""
        if not body or not isinstance(body, str) or not body.strip():
            raise ValidationError("Comment body is required")

        task = await self._load_readable(identity, task_id)

        mention_emails = extract_mention_emails(body)
        mentioned: list[UUID] = []
        if mention_emails:
            result = await self.session.execute(
                select(User.id, User.email).where(
                    User.org_id == identity.org_id,
                    User.email.in_(mention_emails),
                )
            )
            by_email = {email: user_id for user_id, email in result.all()}
            mentioned = [by_email[e] for e in mention_emails if e in by_email]

        [activity] = await self._record_activities(identity, task, [{
            "type": ActivityType.COMMENT,
            "comment_body": body.strip(),
            "mentions": [str(user_id) for user_id in mentioned],
        }])

        await self._audit(
            identity,
            "create",
            task.id,
            before={},
            after={"task_id": task.id, "mentions": mention_emails},
            resource="task_comment",
        )

        for user_id in mentioned:
            await self.notifier.task_mentioned(task, user_id, identity.id)

        return activity

    async def list_activity(
        self, identity: Identity, task_id: UUID, limit: int = 50
    ) -> Sequence[TaskActivity]:
        task = await self._load_readable(identity, task_id)
        result = await self.session.execute(
            select(TaskActivity)
            .where(TaskActivity.org_id == identity.org_id, TaskActivity.task_id == task.id)
            .order_by(TaskActivity.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def list_comments(self, identity: Identity, task_id: UUID) -> Sequence[TaskActivity]:
        task = await self._load_readable(identity, task_id)
        result = await self.session.execute(
            select(TaskActivity)
            .where(
                TaskActivity.org_id == identity.org_id,
                TaskActivity.task_id == task.id,
                TaskActivity.type == ActivityType.COMMENT,
            )
            .order_by(TaskActivity.created_at.asc())
        )
        return result.scalars().all()
