"""
Console rendering for log records and diagnostic events.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from ..levels import Severity

# =============================================================================
# Console Formatter (Aligned Columns)
# =============================================================================

COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "timestamp": "\033[90m",
    "logger": "\033[35m",
    "key": "\033[34m",
}


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{COLORS.get(color, '')}{text}{COLORS['reset']}"


class ConsoleFormatter:
    """Renders a GELF record or a structlog event dict as one aligned line.

    Layout: ``timestamp | LEVEL | source | message key=value ...``
    """

    _RESET = "\x1b[0m"
    _LEVEL_COLORS = {
        "DEBUG": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARN": "\x1b[33m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "FATAL": "\x1b[1;31m",
        "CRITICAL": "\x1b[1;31m",
    }

    # Envelope fields that already appear in a column (or carry no reading value).
    EXCLUDED_KEYS = {
        "version",
        "host",
        "level",
        "message",
        "event",
        "logger",
        "timestamp",
        "short_message",
        "full_message",
        "_name",
        "_application_name",
        "_environment",
        "_product",
        "_service_name",
        "_service_version",
    }
    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
    TIMESTAMP_WIDTH = 19
    LEVEL_WIDTH = 7
    LOGGER_WIDTH = 24
    SEPARATOR = " | "

    @staticmethod
    def _fit_right(text: str, width: int) -> str:
        if width <= 0:
            return text
        if len(text) > width:
            if width <= 3:
                text = text[-width:]
            else:
                text = "..." + text[-(width - 3) :]
        return f"{text:>{width}}"

    @classmethod
    def _format_timestamp(cls, raw_timestamp: Any) -> str:
        if isinstance(raw_timestamp, (int, float)) and not isinstance(raw_timestamp, bool):
            return datetime.fromtimestamp(raw_timestamp).strftime(cls.TIMESTAMP_FORMAT)
        if isinstance(raw_timestamp, str) and raw_timestamp:
            try:
                dt = datetime.fromisoformat(raw_timestamp.replace("Z", "+00:00"))
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                return dt.astimezone().strftime(cls.TIMESTAMP_FORMAT)
            except ValueError:
                pass
        return datetime.now().strftime(cls.TIMESTAMP_FORMAT)

    @staticmethod
    def _level_name(raw_level: Any) -> str:
        if isinstance(raw_level, int) and not isinstance(raw_level, bool):
            try:
                return Severity(raw_level).name
            except ValueError:
                return str(raw_level)
        return str(raw_level or "info").upper()

    @classmethod
    def _colorize_level(cls, text: str, level_upper: str, use_color: bool) -> str:
        if not use_color:
            return text
        color = cls._LEVEL_COLORS.get(level_upper)
        if not color:
            return text
        return f"{color}{text}{cls._RESET}"

    @staticmethod
    def _maybe_color(text: str, color: str, use_color: bool) -> str:
        if not use_color:
            return text
        return colorize(text, color)

    @classmethod
    def format(cls, event_dict: Mapping[str, Any], *, use_color: bool = True) -> str:
        """Format a record or event dict into an aligned string."""
        level_upper = cls._level_name(event_dict.get("level"))
        message = event_dict.get("short_message", event_dict.get("message", event_dict.get("event", "")))
        source = event_dict.get("logger") or event_dict.get("_service_name") or "root"

        extras = []
        for k, v in event_dict.items():
            if k in cls.EXCLUDED_KEYS:
                continue
            extras.append(f"{cls._maybe_color(k, 'key', use_color)}={cls._maybe_color(str(v), 'dim', use_color)}")

        message_text = str(message)
        if extras:
            message_text = f"{message_text} " + " ".join(extras)

        full_message = event_dict.get("full_message")
        if full_message:
            message_text = f"{message_text}\n{full_message}"

        return "".join(
            [
                cls._maybe_color(
                    cls._fit_right(cls._format_timestamp(event_dict.get("timestamp")), cls.TIMESTAMP_WIDTH),
                    "timestamp",
                    use_color,
                ),
                cls.SEPARATOR,
                cls._colorize_level(cls._fit_right(level_upper, cls.LEVEL_WIDTH), level_upper, use_color),
                cls.SEPARATOR,
                cls._maybe_color(cls._fit_right(str(source), cls.LOGGER_WIDTH), "logger", use_color),
                cls.SEPARATOR,
                message_text,
            ]
        )
