"""
Exception hierarchy for safelog.

Nothing here ever escapes a level method of the facade; these are raised by
the lower-level building blocks when used directly.
"""


class SafeLogError(Exception):
    """Base class for safelog errors."""


class InvalidRecordError(SafeLogError, ValueError):
    """A log record is missing a required field or has an empty one."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"required log record field missing or empty: {field}")
