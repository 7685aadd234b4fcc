"""
Bridge from the standard library ``logging`` module into a safelog logger.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..levels import Severity

if TYPE_CHECKING:
    from ..logger import SafeLogger


class SafeLogHandler(logging.Handler):
    """
    Forward standard library log records through a ``SafeLogger``.

    Third-party libraries that log through ``logging`` end up in the same
    console + Graylog pipeline as direct facade calls.
    """

    def __init__(self, safe_logger: SafeLogger, level: int = logging.NOTSET):
        super().__init__(level)
        self.safe_logger = safe_logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # safelog's own diagnostics describe the pipeline; feeding them back loops.
            if record.name == "safelog" or record.name.startswith(("safelog.", "structlog")):
                return

            fields = {
                "logger_name": record.name,
                "module": record.module,
                "line": record.lineno,
            }
            if record.exc_info and record.exc_info[1] is not None:
                fields["exception_type"] = record.exc_info[0].__name__
                formatter = self.formatter or logging.Formatter()
                fields["full_message"] = formatter.formatException(record.exc_info)

            self.safe_logger.log(Severity.from_stdlib(record.levelno), record.getMessage(), **fields)
        except Exception:
            self.handleError(record)


def attach_handler(safe_logger: SafeLogger, *names: str, level: int = logging.NOTSET) -> SafeLogHandler:
    """Attach one ``SafeLogHandler`` to the named loggers (root when none given)."""
    handler = SafeLogHandler(safe_logger, level)
    for name in names or ("",):
        logging.getLogger(name).addHandler(handler)
    return handler
