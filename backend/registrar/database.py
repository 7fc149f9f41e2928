"""
Registrar Backend — Database Engine & Session Management
==========================================================

What:  Async SQLAlchemy engine/session factory builders and schema helpers.
How:   `build_engine()` creates a pooled async engine from a URL,
       `build_session_factory()` wraps it, and `create_schema()` performs the
       startup auto-migration from the ORM metadata.
Who:   Called by the application factory (main.py), Alembic and the tests.
When:  Engine and factory are built once per application instance; sessions
       are opened per persistence operation by the repository.

No engine is created at import time. The bootstrap code owns the engine and
hands the session factory to the persistence gateway.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object between the models, the startup
    auto-migration and Alembic's autogenerate.
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def build_engine(
    database_url: str,
    *,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    echo: bool = False,
) -> AsyncEngine:
    """
    Create the async engine that owns the connection pool.

    Pool sizing only applies to server databases; SQLite engines keep the
    dialect's default pool.
    """
    options = {"echo": echo}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_recycle=3600,  # Recycle after 1 hour to drop stale connections
        )
    return create_async_engine(database_url, **options)


# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: instances returned by the repository stay readable
# after their session has been closed.
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ping(engine: AsyncEngine) -> None:
    """Executes SELECT 1; raises whatever the driver raises when unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_schema(engine: AsyncEngine) -> None:
    """
    What:  Creates every table, index and constraint missing from the database.
    When:  On startup when DB_AUTO_MIGRATE is enabled, and in the test fixtures.
    How:   Runs `Base.metadata.create_all` on a sync connection bridge.
           Existing tables are left untouched; column changes go through Alembic.
    """
    # Register the models on Base.metadata before creating tables.
    from registrar.models.student import Student  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema is up to date")


async def dispose_engine(engine: AsyncEngine) -> None:
    """Closes all pooled connections. Called during application shutdown."""
    await engine.dispose()
