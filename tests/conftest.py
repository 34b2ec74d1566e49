"""Shared test fixtures: a throwaway SQLite database per test and seeded organizations."""

import os

# Settings are read at import time, so the environment comes first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./taskboard-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests-only-min-32-chars")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taskboard.core import Identity, create_access_token, get_session, hash_password
from taskboard.main import app
from taskboard.models import Base, Organization, User, UserRole
from taskboard.services import identity_for


# =============================================================================
# DATABASE
# =============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    # pysqlite's implicit transactions break SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP test client with the session dependency bound to the test database."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# ORGANIZATIONS & USERS
# =============================================================================

PASSWORD = "CorrectHorse42!"


async def make_user(
    session: AsyncSession,
    org: Organization,
    name: str,
    role: UserRole,
    email: str | None = None,
) -> User:
    user = User(
        org_id=org.id,
        name=name,
        email=email or f"{name.lower()}@{org.slug}.example.com",
        password_hash=hash_password(PASSWORD),
        role=role,
    )
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def org(session):
    org = Organization(name="Acme", slug="acme")
    session.add(org)
    await session.commit()
    return org


@pytest_asyncio.fixture
async def other_org(session):
    org = Organization(name="Globex", slug="globex")
    session.add(org)
    await session.commit()
    return org


@pytest_asyncio.fixture
async def admin(session, org):
    return await make_user(session, org, "Ada", UserRole.ADMIN)


@pytest_asyncio.fixture
async def manager(session, org):
    return await make_user(session, org, "Mona", UserRole.MANAGER)


@pytest_asyncio.fixture
async def member(session, org):
    return await make_user(session, org, "Max", UserRole.MEMBER)


@pytest_asyncio.fixture
async def second_member(session, org):
    return await make_user(session, org, "Nia", UserRole.MEMBER)


@pytest_asyncio.fixture
async def outsider(session, other_org):
    return await make_user(session, other_org, "Otto", UserRole.ADMIN)


def as_identity(user: User) -> Identity:
    return identity_for(user)


def auth_headers(user: User) -> dict:
    """Bearer headers for a user."""
    token = create_access_token(user.id, user.org_id)
    return {"Authorization": f"Bearer {token}"}
