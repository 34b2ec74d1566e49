"""Task templates: reusable blueprints for creating tasks."""

from typing import Any, Mapping, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import Conflict, InvalidAssignee, NotFound, ValidationError
from ..core.permissions import Identity
from ..models import TaskPriority, TaskTemplate, User
from .audit import AuditEntry, AuditService

TEMPLATE_FIELDS = ("name", "title", "description", "priority", "assignee_id")


class TemplateService:
    def __init__(self, session: AsyncSession, ip_address: str | None = None):
        self.session = session
        self.ip_address = ip_address
        self.audit = AuditService(session)

    async def _load(self, identity: Identity, template_id: UUID) -> TaskTemplate:
        result = await self.session.execute(
            select(TaskTemplate).where(
                TaskTemplate.id == template_id,
                TaskTemplate.org_id == identity.org_id,
            )
        )
        template = result.scalar_one_or_none()
        if not template:
            raise NotFound("Template not found")
        return template

    async def _ensure_assignee(self, identity: Identity, assignee_id: UUID | None) -> None:
        if assignee_id is None:
            return
        result = await self.session.execute(
            select(User.id).where(User.id == assignee_id, User.org_id == identity.org_id)
        )
        if result.scalar_one_or_none() is None:
            raise InvalidAssignee()

    async def _ensure_unique_name(
        self, identity: Identity, name: str, exclude_id: UUID | None = None
    ) -> None:
        query = select(TaskTemplate.id).where(
            TaskTemplate.org_id == identity.org_id,
            TaskTemplate.name == name,
        )
        if exclude_id is not None:
            query = query.where(TaskTemplate.id != exclude_id)
        if (await self.session.execute(query)).scalar_one_or_none() is not None:
            raise Conflict("A template with this name already exists")

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError:
            raise Conflict("A template with this name already exists")

    async def _audit(
        self, identity: Identity, action: str, template_id: UUID, before: dict, after: dict
    ) -> None:
        await self.audit.record(AuditEntry(
            org_id=identity.org_id,
            user_id=identity.id,
            action=action,
            resource="task_template",
            resource_id=template_id,
            before=before,
            after=after,
            ip_address=self.ip_address,
        ))

    async def list(self, identity: Identity) -> Sequence[TaskTemplate]:
        result = await self.session.execute(
            select(TaskTemplate)
            .where(TaskTemplate.org_id == identity.org_id)
            .order_by(TaskTemplate.name)
        )
        return result.scalars().all()

    async def get(self, identity: Identity, template_id: UUID) -> TaskTemplate:
        return await self._load(identity, template_id)

    async def create(
        self,
        identity: Identity,
        name: str,
        title: str,
        description: str = "",
        priority: TaskPriority = TaskPriority.MEDIUM,
        assignee_id: UUID | None = None,
    ) -> TaskTemplate:
        name, title = name.strip(), title.strip()
        if not name or not title:
            raise ValidationError("Template name and title are required")

        await self._ensure_unique_name(identity, name)
        await self._ensure_assignee(identity, assignee_id)

        template = TaskTemplate(
            org_id=identity.org_id,
            name=name,
            title=title,
            description=description or "",
            priority=priority,
            assignee_id=assignee_id,
            created_by=identity.id,
        )
        self.session.add(template)
        await self._flush()

        await self._audit(
            identity,
            "create",
            template.id,
            before={},
            after={k: getattr(template, k) for k in TEMPLATE_FIELDS},
        )
        return template

    async def update(
        self, identity: Identity, template_id: UUID, patch: Mapping[str, Any]
    ) -> TaskTemplate:
        template = await self._load(identity, template_id)
        patch = {k: v for k, v in patch.items() if k in TEMPLATE_FIELDS}

        for key in ("name", "title"):
            if key in patch:
                patch[key] = (patch[key] or "").strip()
                if not patch[key]:
                    raise ValidationError(f"Template {key} cannot be empty")
        if "priority" in patch:
            if patch["priority"] is None:
                raise ValidationError("priority cannot be null")
            patch["priority"] = TaskPriority(patch["priority"])
        if "description" in patch and patch["description"] is None:
            patch["description"] = ""

        if "name" in patch:
            await self._ensure_unique_name(identity, patch["name"], exclude_id=template.id)
        if "assignee_id" in patch:
            await self._ensure_assignee(identity, patch["assignee_id"])

        changed = {k: v for k, v in patch.items() if getattr(template, k) != v}
        before = {k: getattr(template, k) for k in changed}
        for key, value in changed.items():
            setattr(template, key, value)
        await self._flush()

        await self._audit(identity, "update", template.id, before=before, after=changed)
        return template

    async def delete(self, identity: Identity, template_id: UUID) -> None:
        template = await self._load(identity, template_id)
        before = {"name": template.name, "title": template.title}
        deleted_id = template.id

        await self.session.delete(template)
        await self.session.flush()

        await self._audit(identity, "delete", deleted_id, before=before, after={})
