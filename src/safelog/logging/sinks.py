"""
Log sink abstractions and concrete implementations.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal

import orjson

from .formatters import ConsoleFormatter

if TYPE_CHECKING:
    from ..transport import GraylogTransport

LogFormat = Literal["console", "json"]


def orjson_dumps(v: Any, *, default: Any = None) -> str:
    """Fast JSON serialization using orjson."""
    return orjson.dumps(v, default=default, option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC).decode()


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks."""

    @abstractmethod
    def emit(self, event_dict: Mapping[str, Any]) -> None:
        """Emit a log record to the sink."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...


class StdioSink(BaseSink):
    """Standard I/O sink with configurable format.

    Args:
        fmt: Output format - "console" (colored human-readable) or "json"
        stream: Output stream (default: stderr)
    """

    def __init__(self, fmt: LogFormat = "console", stream: Any = None):
        self._fmt = fmt
        self._stream = stream

    @property
    def stream(self) -> Any:
        # Resolved per write so a replaced sys.stderr is picked up.
        return self._stream or sys.stderr

    def emit(self, event_dict: Mapping[str, Any]) -> None:
        stream = self.stream
        if self._fmt == "json":
            output = orjson_dumps(dict(event_dict), default=str)
        else:
            use_color = bool(getattr(stream, "isatty", lambda: False)())
            output = ConsoleFormatter.format(event_dict, use_color=use_color)

        stream.write(output + "\n")
        stream.flush()

    def close(self) -> None:
        pass


class GraylogSink(BaseSink):
    """Forwards records to a Graylog collector through a ``GraylogTransport``."""

    def __init__(self, transport: GraylogTransport):
        self.transport = transport

    def emit(self, event_dict: Mapping[str, Any]) -> None:
        self.transport.submit(event_dict)

    def close(self) -> None:
        self.transport.close()
