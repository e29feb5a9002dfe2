"""
Unit tests for amenity_booking/config.py

Tests Settings defaults, environment variable loading, validation and
configuration caching behavior.
"""

import logging

import pytest
from pydantic import ValidationError

from amenity_booking.config import Settings, configure_logging, get_settings


class TestSettingsDefaults:
    """Test Settings initialization with default values."""

    def test_settings_defaults(self, monkeypatch):
        """Settings should initialize with correct default values."""
        for name in ("PYTHON_ENV", "LOG_LEVEL", "DATABASE_URL", "TIMEZONE", "MAX_WINDOW_DAYS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.python_env == "development"
        assert settings.log_level == "INFO"
        assert settings.database_url == "sqlite:///./data/amenity_booking.db"
        assert settings.timezone == "America/Toronto"
        assert settings.max_window_days == 731
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 8000
        assert settings.api_reload is True

    def test_is_development_default(self):
        settings = Settings(_env_file=None)
        assert settings.is_development is True
        assert settings.is_production is False

    def test_is_production_when_set(self):
        settings = Settings(python_env="production", _env_file=None)
        assert settings.is_production is True
        assert settings.is_development is False


class TestSettingsEnvironmentVariables:
    """Test Settings loading from environment variables."""

    def test_settings_from_env_vars(self, monkeypatch):
        monkeypatch.setenv("PYTHON_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/test")
        monkeypatch.setenv("TIMEZONE", "Europe/London")
        monkeypatch.setenv("MAX_WINDOW_DAYS", "90")
        monkeypatch.setenv("API_PORT", "9000")

        settings = Settings(_env_file=None)

        assert settings.python_env == "production"
        assert settings.log_level == "DEBUG"
        assert settings.database_url == "postgresql://localhost/test"
        assert settings.timezone == "Europe/London"
        assert settings.max_window_days == 90
        assert settings.api_port == 9000

    def test_settings_case_insensitive(self, monkeypatch):
        """Env var names are case-insensitive, values are not."""
        monkeypatch.setenv("log_level", "ERROR")

        assert Settings(_env_file=None).log_level == "ERROR"


class TestSettingsValidation:
    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="VERBOSE", _env_file=None)

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            Settings(timezone="Mars/Olympus_Mons", _env_file=None)

    def test_window_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(max_window_days=0, _env_file=None)

    def test_uses_postgresql(self):
        assert Settings(database_url="postgresql://localhost/db", _env_file=None).uses_postgresql
        assert not Settings(database_url="sqlite:///test.db", _env_file=None).uses_postgresql


class TestProductionConfig:
    """Test validate_production_config."""

    def test_development_skips_checks(self):
        Settings(_env_file=None).validate_production_config()

    def test_production_requires_postgresql(self):
        settings = Settings(python_env="production", api_reload=False, _env_file=None)

        with pytest.raises(ValueError, match="PostgreSQL"):
            settings.validate_production_config()

    def test_production_requires_reload_disabled(self):
        settings = Settings(
            python_env="production",
            database_url="postgresql://localhost/db",
            api_reload=True,
            _env_file=None,
        )

        with pytest.raises(ValueError, match="API_RELOAD"):
            settings.validate_production_config()

    def test_valid_production_config(self):
        Settings(
            python_env="production",
            database_url="postgresql://localhost/db",
            api_reload=False,
            _env_file=None,
        ).validate_production_config()


class TestGetSettings:
    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch):
        get_settings.cache_clear()
        monkeypatch.setenv("MAX_WINDOW_DAYS", "30")
        try:
            assert get_settings().max_window_days == 30
        finally:
            get_settings.cache_clear()


class TestConfigureLogging:
    def test_applies_level(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

        configure_logging(Settings(log_level="WARNING", _env_file=None))

        assert calls["level"] == logging.WARNING
