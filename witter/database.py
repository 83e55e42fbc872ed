"""
Witter API — Database Session Management
=========================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that commits on success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    PostgreSQL (asyncpg) gets a sized pool with pre-ping and hourly recycle.
    SQLite (aiosqlite) keeps SQLAlchemy's default pool; pool sizing options
    do not apply to it, and foreign keys must be switched on per connection
    for ON DELETE CASCADE to work.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from witter.config import settings


def _engine_kwargs(url: str) -> Dict[str, Any]:
    """Pool options for the given URL; sqlite pools take none of them."""
    kwargs: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return kwargs


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """
    Turn on FOREIGN KEY enforcement for every new SQLite connection.

    SQLite ships with foreign keys disabled, which would silently skip the
    cascades from users to weets, follows and reactions.
    """

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_kwargs(settings.database_url))

if settings.is_sqlite:
    enable_sqlite_foreign_keys(engine)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this shared metadata, which Alembic reads
    for migrations and the test suite uses for create_all/drop_all.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler and its auth dependencies
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.post("/weets")
        async def create_weet(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections. Called during application shutdown."""
    await engine.dispose()
