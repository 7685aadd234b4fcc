"""
safelog Configuration Module.

Nested settings: each concern reads its own environment variable prefix.

    GRAYLOG_*           endpoint, envelope defaults, minimum level, transport tuning
    SAFELOG_CONSOLE_*   local console output

Env files are loaded in this order (later overrides earlier):
    1. .env
    2. $ENV_FILE_PATH (default: .env.development)

Usage:
    from safelog.config import Settings

    settings = Settings()
    settings.graylog.is_active
    settings.console.format
"""

from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict

from .console import ConsoleFormat, ConsoleSettings
from .environment import env_files
from .graylog import GraylogSettings, LogLevel


class Settings(BaseSettings):
    """Composite settings aggregating the graylog and console domains."""

    model_config = SettingsConfigDict(
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def graylog(self) -> GraylogSettings:
        return GraylogSettings()

    @cached_property
    def console(self) -> ConsoleSettings:
        return ConsoleSettings()


__all__ = [
    "ConsoleFormat",
    "ConsoleSettings",
    "GraylogSettings",
    "LogLevel",
    "Settings",
]
