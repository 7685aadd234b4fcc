"""
Cancellable deferred callbacks for the transport.

The transport never sleeps or loops on the producer's thread; every
resumption (first socket open, drain continuation, reconnect) goes through a
``Scheduler``.
"""

from __future__ import annotations

import threading
from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class ScheduledHandle(Protocol):
    def cancel(self) -> None:
        """Prevent the callback from running if it has not started yet."""


@runtime_checkable
class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledHandle:
        """Run ``callback`` once after ``delay`` seconds."""


class ThreadingScheduler:
    """Scheduler backed by daemon ``threading.Timer`` threads."""

    def __init__(self, *, name: str = "safelog-transport"):
        self._name = name

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(delay, 0.0), callback)
        timer.daemon = True
        timer.name = self._name
        timer.start()
        return timer


__all__ = ["ScheduledHandle", "Scheduler", "ThreadingScheduler"]
