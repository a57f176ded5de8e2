"""Tests for configuration settings."""

import pytest
from pydantic import ValidationError


def test_settings_has_defaults(monkeypatch):
    """Test that settings has sensible defaults."""
    from transitoria.config.settings import get_settings

    for name in ("SHIFT_THRESHOLD", "MIN_ACTIVE_MONTHS", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    settings = get_settings()

    assert settings.locale == "nl"
    assert settings.shift_threshold == 1.8
    assert settings.min_active_months == 3
    assert settings.fallback_length == 15
    assert settings.gemini_model == "gemini-2.5-flash"
    assert settings.google_api_key is None


def test_settings_loads_from_env(monkeypatch):
    """Test that settings loads from environment variables."""
    from transitoria.config.settings import get_settings

    monkeypatch.setenv("TRANSITORIA_LOCALE", "en")
    monkeypatch.setenv("SHIFT_THRESHOLD", "2.0")
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")

    settings = get_settings()

    assert settings.locale == "en"
    assert settings.shift_threshold == 2.0
    assert settings.google_api_key.get_secret_value() == "test-key"


def test_settings_validate_ranges(monkeypatch):
    from transitoria.config.settings import Settings

    monkeypatch.setenv("MIN_ACTIVE_MONTHS", "13")
    with pytest.raises(ValidationError):
        Settings()


def test_settings_are_cached():
    """Test that get_settings returns cached instance."""
    from transitoria.config.settings import get_settings

    assert get_settings() is get_settings()
