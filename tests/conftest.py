"""Shared test fixtures — async DB, client, roles, users, auth helpers.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
Fixture data is committed: request sessions share the single StaticPool
connection and may roll it back on a conflict.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from werkzeug.security import generate_password_hash

from officehub.auth.models import UserSession
from officehub.auth.service import create_access_token, hash_token
from officehub.common.constants import AccessLevel
from officehub.database import Base, get_db
from officehub.main import create_app
from officehub.users.models import Role, User

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import officehub.attendance.models  # noqa: F401
import officehub.common.audit  # noqa: F401
import officehub.leave.models  # noqa: F401
import officehub.meetings.models  # noqa: F401
import officehub.tasks.models  # noqa: F401
import officehub.todos.models  # noqa: F401

DEFAULT_PASSWORD = "Passw0rd!"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Clear slowapi's in-memory counters so login limits never leak across tests."""
    from officehub.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Roles and users ─────────────────────────────────────────────────

@pytest.fixture
async def roles(db) -> dict[str, Role]:
    """The four built-in roles, keyed by name."""
    created = {
        name: Role(role_name=name, description=f"{name} role")
        for name in ("admin", "hr", "manager", "employee")
    }
    db.add_all(created.values())
    await db.commit()
    return created


@pytest.fixture
def make_user(db, roles) -> Callable:
    """Factory: insert a committed user with a known password."""

    async def _make(
        login_id: str,
        role: str = "employee",
        *,
        first_name: str = "Test",
        last_name: str = "User",
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True,
        department: str | None = None,
    ) -> User:
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email or f"{login_id.lower()}@example.com",
            role_id=roles[role].id,
            department=department,
            user_id_login=login_id,
            password_hash=generate_password_hash(password),
            is_active=is_active,
        )
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user("ADM001", "admin", first_name="Ada", last_name="Admin")


@pytest.fixture
async def hr_user(make_user) -> User:
    return await make_user("HR001", "hr", first_name="Hana", last_name="Reyes")


@pytest.fixture
async def manager_user(make_user) -> User:
    return await make_user("MGR001", "manager", first_name="Milo", last_name="Grant")


@pytest.fixture
async def employee_user(make_user) -> User:
    return await make_user(
        "EMP001", "employee", first_name="Eve", last_name="Mendes", department="Design",
    )


@pytest.fixture
async def other_employee(make_user) -> User:
    return await make_user("EMP002", "employee", first_name="Omar", last_name="Park")


# ── Auth helpers ────────────────────────────────────────────────────

@pytest.fixture
def auth_headers(db) -> Callable:
    """Factory: Bearer headers for *user* backed by a persisted session.

    The access level inside the token is informational only; requests resolve
    the level from the user's role in the database.
    """

    async def _headers(user: User) -> dict[str, str]:
        token, expires_in = create_access_token(user.id, AccessLevel.employee)
        db.add(
            UserSession(
                user_id=user.id,
                token_hash=hash_token(token),
                expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
            )
        )
        await db.commit()
        return {"Authorization": f"Bearer {token}"}

    return _headers
