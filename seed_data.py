#!/usr/bin/env python3
"""
Seed Data Script for Taskboard

Creates a small "Product Team" scenario through the service layer, so the
seeded rows carry the same activity, audit and notification records a
real client would produce:
- 1 Organization (Acme Product)
- 4 Users (Alice admin, Bob manager, Charlie and Dana members)
- 2 Templates (Bug triage, Weekly report)
- Tasks covering every status, an overdue task, a recurring task,
  assignments, a status change and a comment with an @mention

Run with: python seed_data.py
"""

import asyncio
from datetime import timedelta

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core import get_session_context, init_db
from taskboard.models import RecurringFrequency, TaskPriority, TaskStatus, UserRole, utcnow
from taskboard.services import (
    RegisterInput,
    TaskCreateInput,
    TaskService,
    TemplateService,
    UserService,
    identity_for,
)

PASSWORD = "Taskboard123!"


async def seed_database():
    """Main seeding function."""
    await init_db()

    async with get_session_context() as session:
        print("🌱 Starting database seed...")

        result = await session.execute(text("SELECT COUNT(*) FROM organizations"))
        count = result.scalar()
        if count and count > 0:
            print("⚠️  Database already has data. Clearing existing data...")
            await clear_database(session)

        # =================================================================
        # CREATE ORGANIZATION & USERS
        # =================================================================
        print("\n👥 Creating organization and users...")

        users = UserService(session, ip_address="127.0.0.1")
        registered = await users.register(RegisterInput(
            name="Alice Chen",
            email="alice@acme.example.com",
            password=PASSWORD,
            org_name="Acme Product",
            org_slug="acme-product",
        ))
        alice = identity_for(registered.user)

        bob = identity_for(await users.create(
            alice, "Bob Martinez", "bob@acme.example.com", PASSWORD, UserRole.MANAGER
        ))
        charlie = identity_for(await users.create(
            alice, "Charlie Kim", "charlie@acme.example.com", PASSWORD, UserRole.MEMBER
        ))
        dana = identity_for(await users.create(
            alice, "Dana Osei", "dana@acme.example.com", PASSWORD, UserRole.MEMBER
        ))

        print(f"   ✓ Alice Chen (admin)")
        print(f"   ✓ Bob Martinez (manager)")
        print(f"   ✓ Charlie Kim (member)")
        print(f"   ✓ Dana Osei (member)")

        # =================================================================
        # CREATE TEMPLATES
        # =================================================================
        print("\n📋 Creating templates...")

        templates = TemplateService(session)
        triage = await templates.create(
            alice,
            name="Bug triage",
            title="Triage incoming bug reports",
            description="Reproduce, label and assign every new bug.",
            priority=TaskPriority.HIGH,
            assignee_id=bob.id,
        )
        await templates.create(
            alice,
            name="Weekly report",
            title="Write the weekly status report",
            priority=TaskPriority.LOW,
        )
        print(f"   ✓ Bug triage")
        print(f"   ✓ Weekly report")

        # =================================================================
        # CREATE TASKS
        # =================================================================
        print("\n✅ Creating tasks...")

        tasks = TaskService(session, ip_address="127.0.0.1")
        now = utcnow()

        login_bug = await tasks.create(bob, TaskCreateInput(
            title='Fix "login" redirect loop',
            description="Users on Safari bounce between /login and /home.",
            priority=TaskPriority.CRITICAL,
            assignee_id=charlie.id,
            tags=["bug", "auth"],
            due_date=now - timedelta(days=2),
        ))
        await tasks.create(bob, TaskCreateInput(
            title="Design onboarding checklist",
            status=TaskStatus.IN_PROGRESS,
            assignee_id=dana.id,
            tags=["ux"],
            due_date=now + timedelta(days=5),
        ))
        docs = await tasks.create(charlie, TaskCreateInput(
            title="Document the public API",
            priority=TaskPriority.LOW,
            tags=["docs"],
        ))
        await tasks.create(bob, TaskCreateInput(
            title="Publish weekly metrics",
            assignee_id=bob.id,
            is_recurring=True,
            recurring_frequency=RecurringFrequency.WEEKLY,
        ))
        await tasks.create_from_template(dana, triage.id)

        await tasks.update(charlie, login_bug.id, {"status": TaskStatus.REVIEW})
        await tasks.update(charlie, docs.id, {"status": TaskStatus.DONE})
        await tasks.add_comment(
            charlie,
            login_bug.id,
            "Fix is up for review, @bob@acme.example.com can you take a look?",
        )
        print(f"   ✓ Created 5 tasks with activity, notifications and audit entries")

    print("\n" + "=" * 60)
    print("✅ DATABASE SEEDED SUCCESSFULLY!")
    print("=" * 60)
    print(f"""
📊 Summary:
   • 1 Organization: Acme Product (slug: acme-product)
   • 4 Users, all with password {PASSWORD}
   • 2 Templates: Bug triage, Weekly report
   • 5 Tasks:
     - Fix "login" redirect loop [REVIEW, overdue, commented]
     - Design onboarding checklist [IN PROGRESS]
     - Document the public API [DONE]
     - Publish weekly metrics [RECURRING weekly]
     - Triage incoming bug reports [from template]

🧪 What you can test:
   1. Login as bob@acme.example.com and check the @mention notification
   2. Dashboard: compare Charlie's summary with Bob's
   3. Reports: export the CSV and check the quoted title
   4. Recurring job: taskboard-recurring-tasks once the weekly date passes
""")


async def clear_database(session: AsyncSession):
    """Clear all data from the database (in correct order for FK constraints)."""
    tables = [
        "audit_logs",
        "notifications",
        "task_activities",
        "tasks",
        "task_templates",
        "users",
        "organizations",
    ]

    for table in tables:
        await session.execute(text(f"DELETE FROM {table}"))

    await session.commit()
    print("   ✓ Cleared existing data")


if __name__ == "__main__":
    asyncio.run(seed_database())
