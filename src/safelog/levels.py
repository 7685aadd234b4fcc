"""
Severity scale and filter.

Syslog-style inverted ordinals: a lower number is more severe.
"""

from __future__ import annotations

import logging
from enum import IntEnum


class Severity(IntEnum):
    FATAL = 2
    ERROR = 3
    WARN = 4
    INFO = 6
    DEBUG = 7

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_stdlib(cls, levelno: int) -> Severity:
        """Map a stdlib ``logging`` level number onto the syslog scale."""
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        return cls.DEBUG


_ALIASES = {
    "fatal": Severity.FATAL,
    "critical": Severity.FATAL,
    "error": Severity.ERROR,
    "warn": Severity.WARN,
    "warning": Severity.WARN,
    "info": Severity.INFO,
    "debug": Severity.DEBUG,
}


def parse_severity(value: str | int | None, default: Severity = Severity.INFO) -> Severity:
    """Resolve a level name or number; unknown values fall back to ``default``."""
    if value is None:
        return default
    if isinstance(value, int):
        try:
            return Severity(value)
        except ValueError:
            return default
    return _ALIASES.get(str(value).strip().lower(), default)


def should_emit(level: int, configured_minimum: int) -> bool:
    """True when ``level`` is at least as severe as ``configured_minimum``."""
    return level <= configured_minimum


__all__ = ["Severity", "parse_severity", "should_emit"]
