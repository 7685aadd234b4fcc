"""
safelog: structured logging facade with Graylog (GELF over UDP) forwarding.

Records are normalized into a GELF envelope, printed locally and forwarded
asynchronously to a Graylog collector. When the collector is unreachable or
disabled the logger keeps working console-only.

Library: structlog + orjson for diagnostics and serialization,
pydantic-settings for configuration.
"""

from .config import ConsoleSettings, GraylogSettings, Settings
from .exceptions import InvalidRecordError, SafeLogError
from .levels import Severity, parse_severity, should_emit
from .logger import ContextLogger, SafeLogger, create_logger
from .logging import SafeLogHandler, attach_handler, configure_logging
from .records import LogRecord, RecordDefaults, RecordFormatter
from .transport import ConnectivityResult, GraylogTransport, TransportState

__all__ = [
    "ConnectivityResult",
    "ConsoleSettings",
    "ContextLogger",
    "GraylogSettings",
    "GraylogTransport",
    "InvalidRecordError",
    "LogRecord",
    "RecordDefaults",
    "RecordFormatter",
    "SafeLogError",
    "SafeLogHandler",
    "SafeLogger",
    "Settings",
    "Severity",
    "TransportState",
    "attach_handler",
    "configure_logging",
    "create_logger",
    "parse_severity",
    "should_emit",
]
