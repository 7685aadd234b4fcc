"""
Console Output Configuration.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import env_files


class ConsoleFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


class ConsoleSettings(BaseSettings):
    """Local console sink configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SAFELOG_CONSOLE_",
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    enabled: bool = Field(default=True, description="Print every emitted record locally")
    format: ConsoleFormat = Field(default=ConsoleFormat.CONSOLE, description="Output format")
