"""
Registrar Backend — Application Lifespan Tests
================================================

What:  Tests for the startup sequence run by the FastAPI lifespan.
How:   Drives `lifespan(app)` directly; ASGITransport never runs it, so the
       HTTP tests cannot cover startup.
"""

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from registrar import main
from registrar.config import settings
from registrar.database import build_engine
from registrar.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keeps lifespan from reconfiguring the root logger under pytest."""
    monkeypatch.setattr(main, "setup_logging", lambda: None)


async def table_names(engine):
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())


class TestStartup:

    @pytest.mark.asyncio
    async def test_missing_database_url_aborts(self, monkeypatch):
        monkeypatch.setattr(settings, "database_url", "")
        app = main.create_app()

        with pytest.raises(ConfigurationError) as exc_info:
            async with main.lifespan(app):
                pass

        assert "DATABASE_URL" in exc_info.value.message
        assert app.state.student_repository is None

    @pytest.mark.asyncio
    async def test_unreachable_database_aborts(self, monkeypatch, tmp_path):
        missing = tmp_path / "no-such-dir" / "registrar.db"
        monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{missing}")
        app = main.create_app()

        with pytest.raises(OperationalError):
            async with main.lifespan(app):
                pass

    @pytest.mark.asyncio
    async def test_auto_migrate_creates_students_table(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "db_auto_migrate", True)
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}")
        app = main.create_app(engine=engine)

        async with main.lifespan(app):
            assert "students" in await table_names(engine)
            assert app.state.student_repository is not None

    @pytest.mark.asyncio
    async def test_auto_migrate_off_leaves_schema_alone(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "db_auto_migrate", False)
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}")
        app = main.create_app(engine=engine)

        async with main.lifespan(app):
            assert "students" not in await table_names(engine)
