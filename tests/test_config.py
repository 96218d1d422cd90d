"""Tests for habitcore/config.py — settings loading."""

import logging
from zoneinfo import ZoneInfo

import pytest

from habitcore.config import configure_logging, load_settings
from habitcore.errors import ValidationError
from habitcore.stats import DEFAULT_WINDOW_DAYS


def test_load_from_config_file(workspace):
    settings = load_settings()
    assert settings.root == workspace.resolve()
    assert settings.timezone == "UTC"
    assert settings.tzinfo() == ZoneInfo("UTC")
    assert settings.window_days == 30
    assert settings.log_level == "DEBUG"


def test_defaults_without_config(tmp_path):
    settings = load_settings(tmp_path)
    assert settings.timezone is None
    assert settings.tzinfo() is None
    assert settings.window_days == DEFAULT_WINDOW_DAYS
    assert settings.log_level == "INFO"


def test_env_overrides(workspace, monkeypatch):
    monkeypatch.setenv("HABITS_TIMEZONE", "Asia/Tokyo")
    monkeypatch.setenv("HABITS_WINDOW_DAYS", "14")
    monkeypatch.setenv("HABITS_LOG_LEVEL", "warning")
    settings = load_settings()
    assert settings.timezone == "Asia/Tokyo"
    assert settings.window_days == 14
    assert settings.log_level == "WARNING"


def test_invalid_settings(workspace, monkeypatch):
    monkeypatch.setenv("HABITS_TIMEZONE", "Atlantis/Capital")
    monkeypatch.setenv("HABITS_WINDOW_DAYS", "0")
    monkeypatch.setenv("HABITS_LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError) as exc:
        load_settings()
    assert len(exc.value.errors) == 3


def test_configure_logging():
    configure_logging("WARNING")
    assert logging.getLogger().level == logging.WARNING
    configure_logging("INFO")
