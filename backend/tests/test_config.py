"""
Registrar Backend — Settings Unit Tests
=========================================

What:  Tests for DATABASE_URL normalization and startup validation.
"""

import pytest

from registrar.config import Settings
from registrar.exceptions import ConfigurationError


class TestDatabaseUrl:

    @pytest.mark.parametrize("url", [
        "postgres://app:secret@db:5432/registrar",
        "postgresql://app:secret@db:5432/registrar",
    ])
    def test_libpq_urls_use_asyncpg(self, url):
        settings = Settings(database_url=url)
        assert settings.database_url == "postgresql+asyncpg://app:secret@db:5432/registrar"

    def test_explicit_driver_is_kept(self):
        settings = Settings(database_url="sqlite+aiosqlite:///./local.db")
        assert settings.database_url == "sqlite+aiosqlite:///./local.db"
        assert settings.is_sqlite

    def test_missing_url_fails_validation(self):
        settings = Settings(database_url="")
        with pytest.raises(ConfigurationError, match="DATABASE_URL"):
            settings.validate_required()

    def test_present_url_passes_validation(self):
        Settings(database_url="postgresql://app@db/registrar").validate_required()


class TestLogLevel:

    def test_log_level_is_uppercased(self):
        assert Settings(database_url="sqlite://", log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValueError):
            Settings(database_url="sqlite://", log_level="chatty")
