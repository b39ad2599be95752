"""Tests for settings loading"""

from datetime import timedelta
from pathlib import Path

import pytest

from pawstock.utils.config import DEFAULT_API_URL, ConfigManager, Settings
from pawstock.utils.exceptions import ConfigError


def test_defaults_without_file():
    settings = Settings()

    assert settings.api.base_url == DEFAULT_API_URL
    assert settings.session.duration == timedelta(minutes=15)
    assert settings.session.check_interval_seconds == 300
    assert settings.notifications.poll_interval_seconds == 30
    assert settings.notifications.strategy == "local"


def test_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("PAW_API_URL", "http://localhost:8080")
    monkeypatch.delenv("PAW_NOTIFICATION_STRATEGY", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(
        "api:\n"
        "  base_url: ${PAW_API_URL:https://fallback.test}\n"
        "notifications:\n"
        "  strategy: ${PAW_NOTIFICATION_STRATEGY:remote}\n"
        "session:\n"
        "  duration_minutes: 30\n",
        encoding="utf-8",
    )

    settings = ConfigManager(path).load_settings()

    assert settings.api.base_url == "http://localhost:8080"
    assert settings.notifications.strategy == "remote"
    assert settings.session.duration == timedelta(minutes=30)


def test_required_env_var_missing(tmp_path, monkeypatch):
    monkeypatch.delenv("PAW_REQUIRED_URL", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text("api:\n  base_url: ${PAW_REQUIRED_URL}\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="PAW_REQUIRED_URL"):
        ConfigManager(path).load_settings()


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        ConfigManager(tmp_path / "nope.yaml").load_settings()


def test_invalid_values_raise_config_error(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("notifications:\n  strategy: sometimes\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        ConfigManager(path).load_settings()


def test_shipped_settings_file_is_valid(monkeypatch):
    monkeypatch.chdir(Path(__file__).resolve().parents[1])
    for var in ("ENVIRONMENT", "PAW_API_URL", "PAW_STATE_FILE", "PAW_NOTIFICATION_STRATEGY", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)

    settings = ConfigManager().load_settings()

    assert settings.app.name == "PawStock"
    assert settings.messages.error_dismiss_seconds == 5
