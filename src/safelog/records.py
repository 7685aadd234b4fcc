"""
GELF-style log records and the formatter that produces them.

A ``LogRecord`` is an immutable mapping with the required envelope fields
always present. ``RecordFormatter`` normalizes the accepted message shapes
(plain text, exceptions, structured mappings) into that envelope.
"""

from __future__ import annotations

import socket
import time
import traceback
import uuid
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Union

from .exceptions import InvalidRecordError
from .levels import Severity

GELF_VERSION = "1.1"

REQUIRED_FIELDS = ("version", "host", "short_message", "level", "timestamp", "_correlation_id")

# Set by the formatter; message payloads cannot replace them.
SYSTEM_FIELDS = frozenset({"version", "timestamp", "level"})

# GELF fields that keep their name without the additional-field underscore.
STANDARD_FIELDS = frozenset({"version", "host", "short_message", "full_message", "timestamp", "level"})

Message = Union[str, BaseException, Mapping[str, Any]]

_SHORT_MESSAGE_KEYS = ("msg", "message", "short_message")
_FULL_MESSAGE_KEYS = ("fullMessage", "full_message", "details")


def _hostname() -> str:
    try:
        return socket.gethostname() or "unknown-host"
    except OSError:
        return "unknown-host"


def new_correlation_id() -> str:
    return str(uuid.uuid4())


def field_name(key: str) -> str:
    """Normalize a caller-supplied key into a GELF field name."""
    if key in STANDARD_FIELDS:
        return key
    if not key.startswith("_"):
        key = f"_{key}"
    if key == "_id":
        # reserved by GELF
        return "_id_"
    return key


class LogRecord(Mapping[str, Any]):
    """Immutable log envelope.

    Raises:
        InvalidRecordError: a required field is missing or empty.
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, Any]):
        data = dict(fields)
        for name in REQUIRED_FIELDS:
            value = data.get(name)
            if value is None or value == "":
                raise InvalidRecordError(name)
        self._fields = MappingProxyType(data)

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"LogRecord({dict(self._fields)!r})"

    @property
    def level(self) -> int:
        return self._fields["level"]

    @property
    def short_message(self) -> str:
        return self._fields["short_message"]

    @property
    def correlation_id(self) -> str:
        return self._fields["_correlation_id"]

    def to_dict(self) -> dict[str, Any]:
        return dict(self._fields)

    def merged(self, overrides: Mapping[str, Any]) -> LogRecord:
        """Return a copy with ``overrides`` applied on top, any field included."""
        data = self.to_dict()
        for key, value in overrides.items():
            data[field_name(key)] = value
        return LogRecord(data)


@dataclass(frozen=True)
class RecordDefaults:
    """Static envelope values shared by every record of one logger."""

    application_name: str = "default-app"
    environment: str = "development"
    product: str = "default-product"
    service_name: str | None = None
    service_version: str = "1.0.0"
    host: str = ""

    def as_fields(self) -> dict[str, Any]:
        return {
            "version": GELF_VERSION,
            "host": self.host or _hostname(),
            "_application_name": self.application_name,
            "_environment": self.environment,
            "_product": self.product,
            "_service_name": self.service_name or self.application_name,
            "_service_version": self.service_version,
        }


class RecordFormatter:
    """Build ``LogRecord`` values from any accepted message shape."""

    def __init__(self, defaults: RecordDefaults | None = None, *, clock=time.time):
        self._defaults = defaults or RecordDefaults()
        self._base = self._defaults.as_fields()
        self._clock = clock

    @property
    def defaults(self) -> RecordDefaults:
        return self._defaults

    def format(self, message: Message | Any, level: int = Severity.INFO, /, **fields: Any) -> LogRecord:
        data = dict(self._base)
        data["timestamp"] = self._clock()
        data["level"] = int(level)
        data["_correlation_id"] = new_correlation_id()

        if isinstance(message, str):
            data["short_message"] = message
        elif isinstance(message, BaseException):
            self._apply_exception(data, message)
        elif isinstance(message, Mapping):
            self._apply_mapping(data, message)
        else:
            data["short_message"] = str(message)

        self._apply_extra(data, fields)
        if not data.get("short_message"):
            data["short_message"] = "No Content"
        return LogRecord(data)

    @staticmethod
    def _apply_exception(data: dict[str, Any], exc: BaseException) -> None:
        text = str(exc) or type(exc).__name__
        data["short_message"] = text
        data["full_message"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        data["level"] = int(Severity.ERROR)
        data["_error_message"] = text
        data["_error_code"] = type(exc).__name__

    @classmethod
    def _apply_mapping(cls, data: dict[str, Any], message: Mapping[str, Any]) -> None:
        payload = dict(message)
        short = next((payload[k] for k in _SHORT_MESSAGE_KEYS if payload.get(k)), "No Content")
        full = next((payload[k] for k in _FULL_MESSAGE_KEYS if payload.get(k)), None)
        for key in _SHORT_MESSAGE_KEYS + _FULL_MESSAGE_KEYS:
            payload.pop(key, None)

        data["short_message"] = str(short)
        if full:
            data["full_message"] = str(full)
        correlation_id = payload.pop("_correlation_id", None)
        if correlation_id:
            data["_correlation_id"] = correlation_id
        cls._apply_extra(data, payload)

    @staticmethod
    def _apply_extra(data: dict[str, Any], extra: Mapping[str, Any]) -> None:
        for key, value in extra.items():
            if key in SYSTEM_FIELDS:
                continue
            data[field_name(str(key))] = value


__all__ = [
    "GELF_VERSION",
    "LogRecord",
    "Message",
    "RecordDefaults",
    "RecordFormatter",
    "field_name",
    "new_correlation_id",
]
