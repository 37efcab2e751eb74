"""
Unit tests for configuration module.
"""
import pytest
from pydantic import ValidationError

from core.config import get_settings, reset_settings
from core.schema import ParseOptions


def test_settings_defaults(monkeypatch):
    """Test default configuration values."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    reset_settings()

    settings = get_settings()
    assert settings.app_name == "Banking CSV Display Service"
    assert settings.host == "0.0.0.0"
    assert settings.port == 8000
    assert settings.log_level == "INFO"
    assert settings.session_gap_minutes == 60
    assert settings.session_padding_minutes == 60
    assert settings.parse_options() == ParseOptions()


def test_settings_validation_port(monkeypatch):
    """Test port validation."""
    monkeypatch.setenv("PORT", "99999")

    reset_settings()
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_log_level(monkeypatch):
    """Test log level validation."""
    monkeypatch.setenv("LOG_LEVEL", "INVALID")

    reset_settings()
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_session_minutes(monkeypatch):
    monkeypatch.setenv("SESSION_GAP_MINUTES", "0")

    reset_settings()
    with pytest.raises(ValidationError):
        get_settings()


def test_parse_options_follow_environment(monkeypatch):
    monkeypatch.setenv("TRIM_WHITESPACE", "false")
    monkeypatch.setenv("HANDLE_EMPTY_HEADERS", "false")

    reset_settings()
    options = get_settings().parse_options()
    assert options.trim_whitespace is False
    assert options.handle_empty_headers is False
    assert options.skip_empty_rows is True


def test_settings_singleton():
    """Test settings singleton behavior."""
    reset_settings()
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2


def test_settings_module_uses_v2_config(recwarn):
    """Reloading the module emits no class-based config deprecation."""
    import importlib

    from pydantic import PydanticDeprecatedSince20

    import core.config

    importlib.reload(core.config)
    assert not [w for w in recwarn if issubclass(w.category, PydanticDeprecatedSince20)]
    assert core.config.Settings.model_config["env_file"] == ".env"
    assert core.config.Settings.model_config["extra"] == "ignore"
