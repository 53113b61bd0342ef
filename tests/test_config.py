# tests/test_config.py
"""
Tests for environment-aware settings validation.
"""

import pytest
from pydantic import ValidationError

from cultivation.config import Settings


class TestSettings:
    """Tests for Settings.validate_database_config."""

    def test_test_environment_defaults_to_sqlite(self):
        """Tests run on in-memory SQLite without DATABASE_URL."""
        settings = Settings(environment="test", database_url=None)

        assert settings.database_url == "sqlite:///:memory:"
        assert settings.is_sqlite
        assert settings.is_test

    def test_development_requires_url(self):
        """Should refuse to start development without DATABASE_URL."""
        with pytest.raises(ValidationError, match="DATABASE_URL is required"):
            Settings(environment="development", database_url=None)

    def test_development_sqlite_warns(self):
        """SQLite in development is allowed with a warning."""
        with pytest.warns(UserWarning, match="SQLite in development"):
            Settings(environment="development", database_url="sqlite:///dev.db")

    def test_production_requires_postgres(self):
        """Should reject non-PostgreSQL URLs in production."""
        with pytest.raises(ValidationError, match="requires PostgreSQL"):
            Settings(environment="production", database_url="sqlite:///prod.db")

    def test_production_postgres(self):
        """Should accept PostgreSQL in production."""
        settings = Settings(environment="production", database_url="postgresql://u:p@db:5432/cultivation")

        assert settings.is_production
        assert not settings.is_sqlite

    def test_pool_bounds(self):
        """Pool size is bounded."""
        with pytest.raises(ValidationError):
            Settings(environment="test", db_pool_size=0)

    def test_log_format_values(self):
        """Only text and json log formats exist."""
        with pytest.raises(ValidationError):
            Settings(environment="test", log_format="xml")
