"""
Graylog Configuration.

Invalid endpoint values never raise: they disable forwarding instead, and the
logger keeps working console-only.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..levels import Severity, parse_severity
from .environment import env_files

_TRUTHY = {"1", "true", "yes", "on"}


class LogLevel(str, Enum):
    FATAL = "fatal"
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"

    @property
    def severity(self) -> Severity:
        return parse_severity(self.value)


class GraylogSettings(BaseSettings):
    """Graylog endpoint, envelope defaults and transport tuning."""

    model_config = SettingsConfigDict(
        env_prefix="GRAYLOG_",
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    host: str = Field(default="", description="Collector host name or address")
    port: Optional[int] = Field(default=None, description="Collector UDP port")
    enabled: bool = Field(default=False, description="Forward records to Graylog")
    product: str = Field(default="default-product", description="Product name attached to every record")
    application_name: str = Field(default="default-app", description="Application and service name")
    environment: str = Field(default="development", description="Deployment environment name")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Minimum severity emitted")

    buffer_size: int = Field(default=100, ge=1, description="Records kept while the collector is unreachable")
    batch_size: int = Field(default=10, ge=1, description="Records sent per drain step after reconnecting")
    reconnect_interval: float = Field(default=30.0, gt=0, description="Seconds between reconnect attempts")
    drain_interval: float = Field(default=0.1, ge=0, description="Seconds between drain steps")

    @field_validator("port", mode="before")
    @classmethod
    def _coerce_port(cls, value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None
        try:
            port = int(str(value).strip())
        except ValueError:
            return None
        return port if 0 < port < 65536 else None

    @field_validator("enabled", mode="before")
    @classmethod
    def _coerce_enabled(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY
        return bool(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _coerce_log_level(cls, value: Any) -> LogLevel:
        if isinstance(value, LogLevel):
            return value
        severity = parse_severity(value if isinstance(value, int) else str(value or ""))
        return LogLevel(severity.label)

    @field_validator("product", "application_name", "environment", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value

    @property
    def minimum_severity(self) -> Severity:
        return self.log_level.severity

    @property
    def is_active(self) -> bool:
        """Forwarding is on and the endpoint is usable."""
        return self.enabled and bool(self.host.strip()) and self.port is not None
