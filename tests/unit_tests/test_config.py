"""
Settings parsing: invalid endpoint values disable forwarding instead of failing.
"""

from __future__ import annotations

import pytest

from safelog.config import ConsoleFormat, ConsoleSettings, GraylogSettings, LogLevel, Settings
from safelog.levels import Severity


def test_defaults(graylog_settings) -> None:
    settings = graylog_settings()
    assert settings.enabled is False
    assert settings.is_active is False
    assert settings.product == "default-product"
    assert settings.application_name == "default-app"
    assert settings.environment == "development"
    assert settings.log_level is LogLevel.INFO
    assert settings.buffer_size == 100
    assert settings.batch_size == 10
    assert settings.reconnect_interval == 30.0


def test_environment_variables(monkeypatch) -> None:
    monkeypatch.setenv("GRAYLOG_HOST", "graylog.internal")
    monkeypatch.setenv("GRAYLOG_PORT", "12201")
    monkeypatch.setenv("GRAYLOG_ENABLED", "true")
    monkeypatch.setenv("GRAYLOG_LOG_LEVEL", "warn")

    settings = GraylogSettings(_env_file=None)

    assert settings.is_active is True
    assert settings.port == 12201
    assert settings.minimum_severity is Severity.WARN


@pytest.mark.parametrize("port", ["", "abc", "0", "70000", "-1"])
def test_invalid_port_disables_forwarding(graylog_settings, port) -> None:
    settings = graylog_settings(host="graylog.internal", port=port, enabled=True)
    assert settings.port is None
    assert settings.is_active is False


@pytest.mark.parametrize(("raw", "expected"), [("true", True), ("1", True), ("yes", True), ("false", False), ("", False)])
def test_enabled_flag(graylog_settings, raw, expected) -> None:
    assert graylog_settings(enabled=raw).enabled is expected


@pytest.mark.parametrize(("raw", "expected"), [("error", LogLevel.ERROR), ("WARNING", LogLevel.WARN), ("nope", LogLevel.INFO)])
def test_log_level_parsing(graylog_settings, raw, expected) -> None:
    assert graylog_settings(log_level=raw).log_level is expected


def test_blank_names_fall_back_to_defaults(graylog_settings) -> None:
    settings = graylog_settings(application_name="", product="  ", environment="")
    assert settings.application_name == "default-app"
    assert settings.product == "default-product"
    assert settings.environment == "development"


def test_env_file_is_read(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / ".env.staging"
    env_file.write_text("GRAYLOG_HOST=from-file\nGRAYLOG_PRODUCT=shop\n", encoding="utf-8")

    settings = GraylogSettings(_env_file=str(env_file))

    assert settings.host == "from-file"
    assert settings.product == "shop"


def test_console_settings(monkeypatch) -> None:
    monkeypatch.setenv("SAFELOG_CONSOLE_FORMAT", "json")
    console = ConsoleSettings(_env_file=None)
    assert console.enabled is True
    assert console.format is ConsoleFormat.JSON


def test_composite_settings() -> None:
    settings = Settings(_env_file=None)
    assert isinstance(settings.graylog, GraylogSettings)
    assert settings.graylog is settings.graylog
    assert settings.console.enabled is True
