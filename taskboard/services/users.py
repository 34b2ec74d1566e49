"""User accounts: registration, login and organization user management."""

from dataclasses import dataclass
import logging
import re
from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import Conflict, NotFound, Unauthenticated, ValidationError
from ..core.permissions import Identity
from ..core.security import create_access_token, hash_password, verify_password
from ..models import (
    Notification,
    Organization,
    Task,
    TaskTemplate,
    User,
    UserRole,
    default_notification_prefs,
    utcnow,
)
from .audit import AuditEntry, AuditService

logger = logging.getLogger(__name__)

# Roles a user may request when joining an existing organization
SELF_SERVICE_ROLES = frozenset({UserRole.MANAGER, UserRole.MEMBER})


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def identity_for(user: User) -> Identity:
    return Identity(
        id=user.id,
        org_id=user.org_id,
        name=user.name,
        email=user.email,
        role=user.role,
    )


@dataclass
class RegisterInput:
    name: str
    email: str
    password: str
    org_name: str
    org_slug: str | None = None
    role: UserRole | None = None


@dataclass
class AuthResult:
    token: str
    user: User


class UserService:
    """Account lifecycle. Every write is audited."""

    def __init__(self, session: AsyncSession, ip_address: str | None = None):
        self.session = session
        self.ip_address = ip_address
        self.audit = AuditService(session)

    async def _audit(
        self,
        org_id: UUID,
        actor_id: UUID,
        action: str,
        user_id: UUID,
        before: dict | None = None,
        after: dict | None = None,
    ) -> None:
        await self.audit.record(AuditEntry(
            org_id=org_id,
            user_id=actor_id,
            action=action,
            resource="user",
            resource_id=user_id,
            before=before or {},
            after=after or {},
            ip_address=self.ip_address,
        ))

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    async def register(self, data: RegisterInput) -> AuthResult:
        """Register a user, creating the organization when the slug is new.

        The first user of an organization becomes its admin. Later users
        may ask for manager or member; anything else falls back to member.
        """
        slug = data.org_slug or slugify(data.org_name)
        if not slug:
            raise ValidationError("Organization slug is required")

        result = await self.session.execute(
            select(Organization).where(Organization.slug == slug)
        )
        org = result.scalar_one_or_none()
        if org is None:
            org = Organization(name=data.org_name.strip(), slug=slug)
            self.session.add(org)
            await self.session.flush()
            logger.info(f"Organization created: slug={slug} id={org.id}")

        email = data.email.strip().lower()
        existing = await self.session.execute(
            select(User.id).where(User.org_id == org.id, User.email == email)
        )
        if existing.scalar_one_or_none() is not None:
            raise Conflict("User already exists in this organization")

        member_count = (await self.session.execute(
            select(func.count()).select_from(User).where(User.org_id == org.id)
        )).scalar_one()

        if member_count == 0:
            role = UserRole.ADMIN
        elif data.role in SELF_SERVICE_ROLES:
            role = data.role
        else:
            role = UserRole.MEMBER

        user = User(
            org_id=org.id,
            name=data.name.strip(),
            email=email,
            password_hash=hash_password(data.password),
            role=role,
            notification_prefs=default_notification_prefs(),
        )
        self.session.add(user)
        await self.session.flush()

        await self._audit(
            org.id,
            user.id,
            "user.register",
            user.id,
            after={"name": user.name, "email": user.email, "role": user.role},
        )

        token = create_access_token(user.id, org.id)
        return AuthResult(token=token, user=user)

    async def login(
        self, email: str, password: str, org_slug: str | None = None
    ) -> AuthResult:
        query = select(User).where(User.email == email.strip().lower())

        if org_slug:
            org_result = await self.session.execute(
                select(Organization.id).where(Organization.slug == org_slug)
            )
            org_id = org_result.scalar_one_or_none()
            if org_id is None:
                raise NotFound("Organization not found")
            query = query.where(User.org_id == org_id)

        # Without a slug the oldest account for the email wins
        result = await self.session.execute(query.order_by(User.created_at).limit(1))
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.password_hash):
            raise Unauthenticated("Invalid credentials")

        user.last_login_at = utcnow()
        await self.session.flush()

        await self._audit(user.org_id, user.id, "user.login", user.id)

        token = create_access_token(user.id, user.org_id)
        return AuthResult(token=token, user=user)

    async def get(self, identity: Identity, user_id: UUID) -> User:
        result = await self.session.execute(
            select(User).where(User.id == user_id, User.org_id == identity.org_id)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise NotFound("User not found")
        return user

    # =========================================================================
    # USER MANAGEMENT
    # =========================================================================

    async def list(
        self, identity: Identity, page: int = 1, limit: int = 50
    ) -> tuple[Sequence[User], int]:
        where = User.org_id == identity.org_id
        total = (await self.session.execute(
            select(func.count()).select_from(User).where(where)
        )).scalar_one()

        result = await self.session.execute(
            select(User)
            .where(where)
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return result.scalars().all(), total

    async def create(
        self,
        identity: Identity,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.MEMBER,
    ) -> User:
        """Add a user to the caller's organization."""
        email = email.strip().lower()
        existing = await self.session.execute(
            select(User.id).where(User.org_id == identity.org_id, User.email == email)
        )
        if existing.scalar_one_or_none() is not None:
            raise Conflict("User already exists in this organization")

        user = User(
            org_id=identity.org_id,
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=role,
            notification_prefs=default_notification_prefs(),
        )
        self.session.add(user)
        await self.session.flush()

        await self._audit(
            identity.org_id,
            identity.id,
            "user.create",
            user.id,
            after={"name": user.name, "email": user.email, "role": user.role},
        )
        return user

    async def update_role(self, identity: Identity, user_id: UUID, role: UserRole) -> User:
        user = await self.get(identity, user_id)
        role = UserRole(role)

        before = {"role": user.role}
        user.role = role
        await self.session.flush()

        await self._audit(
            identity.org_id,
            identity.id,
            "user.update",
            user.id,
            before=before,
            after={"role": role},
        )
        return user

    async def delete(self, identity: Identity, user_id: UUID) -> None:
        """Remove a user.

        Assignments and templates pointing at the user are cleared. Users who
        created tasks or templates cannot be removed, since those rows name
        their creator.
        """
        if user_id == identity.id:
            raise ValidationError("You cannot delete your own account")

        user = await self.get(identity, user_id)

        owned_tasks = (await self.session.execute(
            select(func.count()).select_from(Task).where(
                Task.org_id == identity.org_id, Task.created_by == user.id
            )
        )).scalar_one()
        owned_templates = (await self.session.execute(
            select(func.count()).select_from(TaskTemplate).where(
                TaskTemplate.org_id == identity.org_id, TaskTemplate.created_by == user.id
            )
        )).scalar_one()
        if owned_tasks or owned_templates:
            raise Conflict("User has created tasks or templates and cannot be deleted")

        before = {"name": user.name, "email": user.email, "role": user.role}

        await self.session.execute(
            update(Task)
            .where(Task.org_id == identity.org_id, Task.assignee_id == user.id)
            .values(assignee_id=None)
        )
        await self.session.execute(
            update(TaskTemplate)
            .where(TaskTemplate.org_id == identity.org_id, TaskTemplate.assignee_id == user.id)
            .values(assignee_id=None)
        )
        await self.session.execute(
            delete(Notification).where(Notification.recipient_id == user.id)
        )
        await self.session.delete(user)
        await self.session.flush()

        await self._audit(identity.org_id, identity.id, "user.delete", user_id, before=before)
        logger.info(f"User deleted: id={user_id} org={identity.org_id} by={identity.id}")

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    async def update_preferences(
        self,
        identity: Identity,
        email: bool | None = None,
        in_app: bool | None = None,
    ) -> dict:
        user = await self.get(identity, identity.id)
        prefs = {**default_notification_prefs(), **(user.notification_prefs or {})}
        if email is not None:
            prefs["email"] = email
        if in_app is not None:
            prefs["in_app"] = in_app

        # Reassign so the JSON column is marked dirty
        user.notification_prefs = prefs
        await self.session.flush()
        return prefs
