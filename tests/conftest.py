"""
Witter API — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets a fresh in-memory SQLite database (aiosqlite, one
       shared connection via StaticPool, foreign keys on) with every table
       created. The FastAPI app's get_db_session dependency is overridden to
       use that database.

Fixture Hierarchy (all function-scoped):
    ├── engine:      in-memory async engine with the schema created
    ├── db_session:  AsyncSession for service-level tests and seeding
    ├── client:      HTTPX AsyncClient talking to the app over ASGITransport
    └── make_user / make_weet / token_for: seeding helpers
"""

import os

# Override settings for testing BEFORE any witter imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_WORK_FACTOR"] = "4"  # minimum bcrypt cost; keeps hashing fast
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import witter.models  # noqa: F401  (registers every table)
from witter.database import Base, dispose_engine, enable_sqlite_foreign_keys, get_db_session
from witter.models.user import User
from witter.models.weet import Weet
from witter.services.token_service import create_token, user_claims
from witter.services.user_service import user_service

DEFAULT_PASSWORD = "Password1!"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Session for calling services directly and for seeding HTTP tests.

    Service tests only flush; HTTP tests must commit seeded rows so the
    request's own session sees them.
    """
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient wired to the app, with the database swapped for the
    per-test in-memory one.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
    """
    from witter.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    # /health talks to the module engine; drop its connections with this test's loop
    await dispose_engine()


# ══════════════════════════════════════════════════════════════════════════
# Seeding Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    """
    Register a user through UserService.

    Usage:
        user = await make_user("handle123")
    """

    async def _make_user(
        handle: str,
        username: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        email: Optional[str] = None,
    ) -> User:
        return await user_service.register(
            db_session,
            handle,
            username or f"{handle}name",
            password,
            email or f"{handle}@witter.com",
        )

    return _make_user


@pytest.fixture
def make_weet(db_session):
    """Insert a weet row directly, optionally with a fixed timestamp."""

    async def _make_weet(author: str, body: str = "a sample weet",
                         time_date: Optional[datetime] = None) -> Weet:
        weet = Weet(weet=body, author=author,
                    time_date=time_date or datetime.now(timezone.utc))
        db_session.add(weet)
        await db_session.flush()
        return weet

    return _make_weet


@pytest.fixture
def token_for():
    """Signed session token for a user row, as sign-up would issue it."""

    def _token_for(user: User) -> str:
        return create_token(user_claims(user))

    return _token_for
