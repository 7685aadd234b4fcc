"""
SafeLogger facade.

Every level method formats the message into a GELF record, applies the
severity filter and hands the record to each sink independently: the local
console sink and, when Graylog is active, the forwarding transport. No level
method ever raises; the worst case is a ``[FALLBACK]`` line on stderr.

Usage:
    from safelog import create_logger

    log = create_logger()
    log.info("user created", user_id=42)

    request_log = log.bind(request_id="r-1")
    request_log.error(exc)

    log.test_connection()
    log.close()
"""

from __future__ import annotations

import asyncio
import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from .config import ConsoleSettings, GraylogSettings, Settings
from .levels import Severity, parse_severity, should_emit
from .logging import BaseSink, GraylogSink, StdioSink, ensure_logging_configured, get_logger
from .records import LogRecord, Message, RecordDefaults, RecordFormatter
from .transport import ConnectivityResult, GraylogTransport

logger = get_logger("safelog.logger")


def _fallback(level: int, message: Any, fields: Mapping[str, Any] | None = None) -> None:
    try:
        label = parse_severity(level).label
        print("[FALLBACK]", label, message, dict(fields or {}), file=sys.stderr)
    except Exception:
        pass  # stderr itself is gone; nothing left to report to


class _LevelMethods(ABC):
    """Level-tagged entry points shared by the logger and its bound contexts."""

    @abstractmethod
    def log(self, level: int, message: Message | Any, /, **fields: Any) -> None:
        """Emit ``message`` at ``level``."""

    def fatal(self, message: Message | Any, /, **fields: Any) -> None:
        self.log(Severity.FATAL, message, **fields)

    def critical(self, message: Message | Any, /, **fields: Any) -> None:
        self.log(Severity.FATAL, message, **fields)

    def error(self, message: Message | Any, /, **fields: Any) -> None:
        self.log(Severity.ERROR, message, **fields)

    def warn(self, message: Message | Any, /, **fields: Any) -> None:
        self.log(Severity.WARN, message, **fields)

    def warning(self, message: Message | Any, /, **fields: Any) -> None:
        self.log(Severity.WARN, message, **fields)

    def info(self, message: Message | Any, /, **fields: Any) -> None:
        self.log(Severity.INFO, message, **fields)

    def debug(self, message: Message | Any, /, **fields: Any) -> None:
        self.log(Severity.DEBUG, message, **fields)


class ContextLogger(_LevelMethods):
    """Emitter that merges a fixed set of fields into every record it produces.

    Context fields are applied last and win over any field of the formatted
    record.
    """

    def __init__(self, parent: SafeLogger, context: Mapping[str, Any]):
        self._parent = parent
        self._context = dict(context)

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    def log(self, level: int, message: Message | Any, /, **fields: Any) -> None:
        self._parent._emit(level, message, fields, self._context)

    def bind(self, **context: Any) -> ContextLogger:
        return ContextLogger(self._parent, {**self._context, **context})


class SafeLogger(_LevelMethods):
    """Structured logger writing to the console and, optionally, to Graylog.

    Args:
        graylog: Graylog settings; read from the environment when omitted.
        console: Console settings; read from the environment when omitted.
        transport: Pre-built transport, used instead of one built from settings.
        console_sink: Pre-built console sink, used instead of a ``StdioSink``.
    """

    def __init__(
        self,
        graylog: GraylogSettings | None = None,
        console: ConsoleSettings | None = None,
        *,
        transport: GraylogTransport | None = None,
        console_sink: BaseSink | None = None,
    ):
        ensure_logging_configured()
        self.graylog_settings = graylog or GraylogSettings()
        self.console_settings = console or ConsoleSettings()
        self._minimum = self.graylog_settings.minimum_severity
        self._formatter = RecordFormatter(
            RecordDefaults(
                application_name=self.graylog_settings.application_name,
                environment=self.graylog_settings.environment,
                product=self.graylog_settings.product,
            )
        )

        self._sinks: list[BaseSink] = []
        if console_sink is not None:
            self._sinks.append(console_sink)
        elif self.console_settings.enabled:
            self._sinks.append(StdioSink(fmt=self.console_settings.format.value))

        announce = transport is None
        if transport is None and self.graylog_settings.is_active:
            transport = GraylogTransport(
                self.graylog_settings.host,
                self.graylog_settings.port,
                buffer_size=self.graylog_settings.buffer_size,
                batch_size=self.graylog_settings.batch_size,
                reconnect_interval=self.graylog_settings.reconnect_interval,
                drain_interval=self.graylog_settings.drain_interval,
            )
        self._transport = transport
        if transport is not None:
            self._sinks.append(GraylogSink(transport))

        if transport is not None and announce:
            logger.info("graylog_transport_configured", host=transport.host, port=transport.port)
            self.info(
                {
                    "short_message": "Graylog configuration loaded",
                    "graylog_host": transport.host,
                    "graylog_port": transport.port,
                }
            )

    def __enter__(self) -> SafeLogger:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def log(self, level: int, message: Message | Any, /, **fields: Any) -> None:
        self._emit(level, message, fields, None)

    def _emit(
        self,
        level: int,
        message: Message | Any,
        fields: Mapping[str, Any],
        context: Mapping[str, Any] | None,
    ) -> None:
        try:
            if not should_emit(int(level), self._minimum):
                return
            record = self._formatter.format(message, level, **fields)
            if context:
                record = record.merged(context)
        except Exception:
            _fallback(level, message, fields)
            return

        for sink in self._sinks:
            try:
                sink.emit(record)
            except Exception:
                _fallback(level, message, fields)

    def bind(self, **context: Any) -> ContextLogger:
        return ContextLogger(self, context)

    def create_context(self, context: Mapping[str, Any]) -> ContextLogger:
        return ContextLogger(self, context)

    def format_log(self, message: Message | Any, level: int = Severity.INFO, /, **fields: Any) -> LogRecord:
        return self._formatter.format(message, level, **fields)

    # ------------------------------------------------------------------
    # Diagnostics and lifecycle
    # ------------------------------------------------------------------

    @property
    def transport(self) -> GraylogTransport | None:
        return self._transport

    def is_enabled(self) -> bool:
        return self._transport is not None

    def get_config(self) -> dict[str, Any]:
        return self.graylog_settings.model_dump(mode="json")

    def test_connection(self, timeout: float = 1.0) -> ConnectivityResult:
        """Send a probe record to the collector.

        ``success`` only means the local network stack accepted the datagram;
        UDP gives no receipt confirmation from the collector.
        """
        if self._transport is None:
            return ConnectivityResult(False, "disabled")
        try:
            return self._transport.test_connectivity(self._formatter.format("Connection test"), timeout=timeout)
        except Exception as exc:
            return ConnectivityResult(False, f"connection test failed: {exc}")

    async def atest_connection(self, timeout: float = 1.0) -> ConnectivityResult:
        return await asyncio.to_thread(self.test_connection, timeout)

    def close(self) -> None:
        for sink in self._sinks:
            try:
                sink.close()
            except Exception as exc:
                logger.warning("sink_close_failed", sink=type(sink).__name__, error=str(exc))


def create_logger(settings: Settings | None = None, **overrides: Any) -> SafeLogger:
    """Build a SafeLogger from the environment, optionally overriding Graylog fields.

    Example:
        create_logger(host="graylog.internal", port=12201, enabled=True)
    """
    settings = settings or Settings()
    graylog = GraylogSettings(**overrides) if overrides else settings.graylog
    return SafeLogger(graylog, settings.console)


__all__ = ["ContextLogger", "SafeLogger", "create_logger"]
