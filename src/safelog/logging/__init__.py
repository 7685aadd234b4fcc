"""
Local logging plumbing for safelog.

- sinks: console/json stdio output and the Graylog forwarding sink
- core: structlog configuration for safelog's own diagnostics
- handlers: stdlib ``logging`` bridge into a SafeLogger

Library: structlog + orjson.
"""

from .core import configure_logging, ensure_logging_configured, get_logger
from .handlers import SafeLogHandler, attach_handler
from .sinks import BaseSink, GraylogSink, StdioSink

__all__ = [
    "BaseSink",
    "GraylogSink",
    "SafeLogHandler",
    "StdioSink",
    "attach_handler",
    "configure_logging",
    "ensure_logging_configured",
    "get_logger",
]
