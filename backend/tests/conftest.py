"""
Registrar Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file (aiosqlite driver) with
       the schema created from the ORM metadata, so tests never share rows.

Fixture Hierarchy (all function-scoped):
    engine            async engine over a fresh SQLite file
    ├── repository    StudentRepository bound to that engine
    └── test_client   HTTPX AsyncClient talking to create_app(engine=engine)
    student_payload   a valid POST body
    mock_db_session   AsyncMock standing in for an AsyncSession
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before registrar.config is imported: the settings singleton
# reads the environment once.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./registrar_test.db"
os.environ["LOG_LEVEL"] = "WARNING"

from registrar.database import build_engine, build_session_factory, create_schema  # noqa: E402
from registrar.services.student_repository import StudentRepository  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine over an empty, fully migrated SQLite database."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'registrar.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def repository(engine):
    return StudentRepository(build_session_factory(engine))


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession plus a session factory that yields it.

    Usage:
        session, factory = mock_db_session
        session.execute.side_effect = OperationalError(...)
        repo = StudentRepository(factory)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()

    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return session, factory


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(engine):
    from registrar.main import create_app
    return create_app(engine=engine)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/students/")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def student_payload():
    return {
        "name": "Ada Lovelace",
        "email": "ada.lovelace@university.edu",
        "age": 20,
        "department": "Mathematics",
    }
