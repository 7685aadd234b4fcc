"""
Local sinks, diagnostics configuration and the stdlib logging bridge.
"""

from __future__ import annotations

import io
import logging
from unittest.mock import MagicMock

import orjson
import pytest
import structlog

from safelog.levels import Severity
from safelog.logging import SafeLogHandler, StdioSink, attach_handler, configure_logging, get_logger
from safelog.logging.formatters import ConsoleFormatter
from safelog.records import RecordDefaults, RecordFormatter


@pytest.fixture
def record():
    formatter = RecordFormatter(RecordDefaults(application_name="billing", host="web-1"), clock=lambda: 0.0)
    return formatter.format("invoice sent", Severity.WARN, invoice_id=12)


class TestStdioSink:
    def test_console_format(self, record) -> None:
        stream = io.StringIO()
        StdioSink(stream=stream).emit(record)

        line = stream.getvalue()
        assert line.endswith("\n")
        columns = line.rstrip("\n").split(" | ")
        assert columns[1].strip() == "WARN"
        assert columns[2].strip() == "billing"
        assert "invoice sent" in columns[3]
        assert "_invoice_id=12" in columns[3]
        assert "_correlation_id=" in columns[3]
        assert "\x1b[" not in line

    def test_json_format(self, record) -> None:
        stream = io.StringIO()
        StdioSink(fmt="json", stream=stream).emit(record)

        decoded = orjson.loads(stream.getvalue())
        assert decoded["short_message"] == "invoice sent"
        assert decoded["_invoice_id"] == 12


class TestConsoleFormatter:
    def test_event_dict_from_structlog(self) -> None:
        line = ConsoleFormatter.format(
            {"level": "warning", "message": "graylog_send_failed", "logger": "safelog.transport", "error": "boom"},
            use_color=False,
        )
        assert "WARNING" in line
        assert "safelog.transport" in line
        assert "graylog_send_failed error=boom" in line

    def test_full_message_on_following_line(self) -> None:
        line = ConsoleFormatter.format({"level": 3, "short_message": "x", "full_message": "trace"}, use_color=False)
        assert "ERROR" in line
        assert line.endswith("\ntrace")

    def test_long_source_is_truncated_from_the_left(self) -> None:
        line = ConsoleFormatter.format({"message": "m", "logger": "a" * 40}, use_color=False)
        assert "..." in line.split(" | ")[2]


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_diagnostics_reach_stream(self) -> None:
        stream = io.StringIO()
        configure_logging(level="INFO", stream=stream)

        get_logger("safelog.transport").warning("graylog_send_failed", error="unreachable")

        output = stream.getvalue()
        assert "graylog_send_failed" in output
        assert "safelog.transport" in output
        assert "error=unreachable" in output

    def test_level_filter(self) -> None:
        stream = io.StringIO()
        configure_logging(level="ERROR", stream=stream)

        get_logger("safelog.transport").warning("ignored")

        assert stream.getvalue() == ""

    def test_json_diagnostics(self) -> None:
        stream = io.StringIO()
        configure_logging(level="DEBUG", fmt="json", stream=stream)

        get_logger("safelog.test").info("hello", count=2)

        decoded = orjson.loads(stream.getvalue())
        assert decoded["message"] == "hello"
        assert decoded["logger"] == "safelog.test"
        assert decoded["count"] == 2


class TestSafeLogHandler:
    @pytest.fixture
    def safe_logger(self) -> MagicMock:
        return MagicMock()

    def test_forwards_stdlib_records(self, safe_logger) -> None:
        std_logger = logging.getLogger("thirdparty.client")
        std_logger.setLevel(logging.DEBUG)
        handler = attach_handler(safe_logger, "thirdparty")
        try:
            std_logger.warning("retrying %s", "request")
        finally:
            logging.getLogger("thirdparty").removeHandler(handler)

        level, message = safe_logger.log.call_args.args
        fields = safe_logger.log.call_args.kwargs
        assert level is Severity.WARN
        assert message == "retrying request"
        assert fields["logger_name"] == "thirdparty.client"

    def test_exception_info_is_attached(self, safe_logger) -> None:
        handler = SafeLogHandler(safe_logger)
        std_logger = logging.getLogger("thirdparty.exc")
        std_logger.addHandler(handler)
        try:
            try:
                raise ValueError("bad")
            except ValueError:
                std_logger.exception("failed")
        finally:
            std_logger.removeHandler(handler)

        fields = safe_logger.log.call_args.kwargs
        assert safe_logger.log.call_args.args[0] is Severity.ERROR
        assert fields["exception_type"] == "ValueError"
        assert "Traceback" in fields["full_message"]

    def test_ignores_own_diagnostics(self, safe_logger) -> None:
        handler = SafeLogHandler(safe_logger)
        handler.emit(logging.LogRecord("safelog.transport", logging.WARNING, __file__, 1, "x", None, None))
        safe_logger.log.assert_not_called()
