"""
UDP forwarding transport for Graylog.

Records are handed to a connectionless datagram socket without blocking the
producer. While the socket is unavailable records wait in a bounded FIFO
queue that prefers new data over old; a fixed-interval reconnect timer brings
the socket back and the queue is drained in small batches.

State machine::

    DISCONNECTED --open ok--> CONNECTED --send/socket error--> DISCONNECTED
    DISCONNECTED --arm timer--> RECONNECT_PENDING --timer--> DISCONNECTED (re-open)

The reconnect interval is fixed (no exponential backoff). Delivery is best
effort: a datagram accepted by the local stack may still never reach the
collector.
"""

from __future__ import annotations

import errno
import socket
import threading
import time
from collections import deque
from collections.abc import Mapping
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Union

import orjson

from .logging import ensure_logging_configured, get_logger
from .records import LogRecord, RecordFormatter
from .scheduling import ScheduledHandle, Scheduler, ThreadingScheduler

logger = get_logger("safelog.transport")

Payload = Union[LogRecord, Mapping[str, Any], str]
Resolver = Callable[[str, int], tuple[int, Any]]
SocketFactory = Callable[[int], Any]

DEFAULT_BUFFER_SIZE = 100
DEFAULT_BATCH_SIZE = 10
DEFAULT_RECONNECT_INTERVAL = 30.0
DEFAULT_DRAIN_INTERVAL = 0.1


class TransportState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECT_PENDING = "reconnect_pending"


@dataclass(frozen=True)
class ConnectivityResult:
    """Outcome of a connectivity probe.

    ``success`` means the local network stack accepted the datagram. UDP has
    no acknowledgements, so it never proves the collector received it.
    """

    success: bool
    detail: str
    test_id: str | None = None


@dataclass
class TransportStats:
    sent: int = 0
    dropped: int = 0
    failed: int = 0
    reconnects: int = 0


@dataclass
class PendingDelivery:
    """A record waiting for the socket, plus its local completion notice."""

    record: Payload
    completion: Future = field(default_factory=Future)

    def resolve(self, delivered: bool) -> None:
        if not self.completion.done():
            self.completion.set_result(delivered)


class DeliveryQueue:
    """Bounded FIFO of pending deliveries; the oldest entry is evicted on overflow."""

    def __init__(self, capacity: int = DEFAULT_BUFFER_SIZE):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[PendingDelivery] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    def append(self, entry: PendingDelivery) -> PendingDelivery | None:
        """Append ``entry``; return the evicted entry when the queue was full."""
        evicted = self._entries.popleft() if len(self._entries) >= self.capacity else None
        self._entries.append(entry)
        return evicted

    def requeue(self, entries: list[PendingDelivery]) -> list[PendingDelivery]:
        """Put ``entries`` back at the head in their original order.

        Returns whatever had to be evicted from the head to respect capacity.
        """
        self._entries.extendleft(reversed(entries))
        evicted = []
        while len(self._entries) > self.capacity:
            evicted.append(self._entries.popleft())
        return evicted

    def take(self, count: int) -> list[PendingDelivery]:
        batch = []
        while self._entries and len(batch) < count:
            batch.append(self._entries.popleft())
        return batch

    def clear(self) -> list[PendingDelivery]:
        entries = list(self._entries)
        self._entries.clear()
        return entries


def encode_payload(record: Payload) -> bytes:
    """Encode one record as a datagram body (raw text or JSON)."""
    if isinstance(record, str):
        return record.encode("utf-8")
    if isinstance(record, LogRecord):
        record = record.to_dict()
    elif not isinstance(record, dict):
        record = dict(record)
    return orjson.dumps(record, option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC)


def resolve_endpoint(host: str, port: int) -> tuple[int, Any]:
    """Return ``(address_family, sockaddr)`` for a UDP endpoint."""
    family, _, _, _, sockaddr = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)[0]
    return family, sockaddr


def udp_socket(family: int) -> socket.socket:
    sock = socket.socket(family, socket.SOCK_DGRAM)
    sock.setblocking(False)
    return sock


class GraylogTransport:
    """Asynchronous best-effort forwarder of log records to a UDP collector.

    Args:
        host: Collector host name or address.
        port: Collector UDP port.
        buffer_size: Capacity of the delivery queue.
        batch_size: Maximum records sent per drain step.
        reconnect_interval: Seconds between a failure and the next open attempt.
        drain_interval: Seconds between drain steps while the queue is non-empty.
        scheduler: Source of cancellable deferred callbacks.
        socket_factory: ``family -> socket`` used on every open attempt.
        resolver: ``(host, port) -> (family, sockaddr)``.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        batch_size: int = DEFAULT_BATCH_SIZE,
        reconnect_interval: float = DEFAULT_RECONNECT_INTERVAL,
        drain_interval: float = DEFAULT_DRAIN_INTERVAL,
        scheduler: Scheduler | None = None,
        socket_factory: SocketFactory | None = None,
        resolver: Resolver | None = None,
    ):
        ensure_logging_configured()
        self.host = host
        self.port = port
        self._queue = DeliveryQueue(buffer_size)
        self._batch_size = max(1, batch_size)
        self._reconnect_interval = reconnect_interval
        self._drain_interval = drain_interval
        self._scheduler = scheduler or ThreadingScheduler()
        self._socket_factory = socket_factory or udp_socket
        self._resolver = resolver or resolve_endpoint

        self._lock = threading.RLock()
        self._state = TransportState.DISCONNECTED
        self._stats = TransportStats()
        self._sock: Any = None
        self._address: Any = None
        self._drain_handle: ScheduledHandle | None = None
        self._connect_handle: ScheduledHandle | None = None
        self._closed = False

        # Opening resolves the host name, which must not run on the caller's thread.
        with self._lock:
            self._connect_handle = self._scheduler.call_later(0, self._open)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> TransportState:
        with self._lock:
            return self._state

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def stats(self) -> TransportStats:
        with self._lock:
            return replace(self._stats)

    def pending(self) -> list[Payload]:
        """Snapshot of queued records, oldest first."""
        with self._lock:
            return [entry.record for entry in self._queue]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, record: Payload) -> Future:
        """Offer ``record`` for delivery. Never blocks and never raises.

        The returned future resolves ``True`` once the datagram is handed to
        the socket and ``False`` if the record is evicted, discarded on close
        or cannot be serialized. It is not a delivery acknowledgement.
        """
        entry = PendingDelivery(record)
        try:
            with self._lock:
                if self._closed:
                    entry.resolve(False)
                elif self._state is TransportState.CONNECTED and not self._queue:
                    if not self._transmit(entry):
                        self._enqueue(entry)
                        self._fail()
                else:
                    self._enqueue(entry)
        except Exception as exc:
            entry.resolve(False)
            logger.error("graylog_submit_failed", error=str(exc))
        return entry.completion

    def close(self) -> None:
        """Cancel scheduled work, release the socket and discard queued records."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cancel(self._connect_handle)
            self._cancel(self._drain_handle)
            self._connect_handle = None
            self._drain_handle = None
            self._release_socket()
            self._state = TransportState.DISCONNECTED
            discarded = self._queue.clear()
            for entry in discarded:
                entry.resolve(False)
            self._stats.dropped += len(discarded)
        logger.debug("graylog_transport_closed", discarded=len(discarded))

    def test_connectivity(self, probe: Payload | None = None, *, timeout: float = 1.0) -> ConnectivityResult:
        """Submit a probe record and report whether the local stack accepted it."""
        if self.closed:
            return ConnectivityResult(False, "transport closed")

        test_id = f"test-{int(time.time() * 1000)}"
        if probe is None:
            probe = RecordFormatter().format("Connection test")
        if isinstance(probe, LogRecord):
            probe = probe.merged(
                {"short_message": f"Connection test [{test_id}]", "_test_id": test_id, "_tags": ["test"]}
            )

        completion = self.submit(probe)
        try:
            accepted = completion.result(timeout=timeout)
        except FutureTimeoutError:
            return ConnectivityResult(
                False,
                f"transport is {self.state.value}; probe {test_id} queued until the socket is available",
                test_id,
            )

        if not accepted:
            return ConnectivityResult(False, f"probe {test_id} was not sent", test_id)
        return ConnectivityResult(
            True,
            f"probe {test_id} accepted by the local network stack for {self.host}:{self.port}; "
            "UDP has no acknowledgements, so receipt by the collector is not confirmed",
            test_id,
        )

    # ------------------------------------------------------------------
    # Scheduled callbacks
    # ------------------------------------------------------------------

    def _open(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._connect_handle = None

        try:
            family, address = self._resolver(self.host, self.port)
            sock = self._socket_factory(family)
        except Exception as exc:
            with self._lock:
                if self._closed:
                    return
                logger.warning(
                    "graylog_socket_open_failed",
                    host=self.host,
                    port=self.port,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                self._fail()
            return

        with self._lock:
            if self._closed:
                sock.close()
                return
            self._sock = sock
            self._address = address
            self._state = TransportState.CONNECTED
            logger.info("graylog_transport_connected", host=self.host, port=self.port, queued=len(self._queue))
            self._drain()

    def _on_reconnect_timer(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._connect_handle = None
            self._state = TransportState.DISCONNECTED
            self._stats.reconnects += 1
        logger.info("graylog_reconnecting", host=self.host, port=self.port)
        self._open()

    def _on_drain_timer(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._drain_handle = None
            self._drain()

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _drain(self) -> None:
        """Send one batch in FIFO order; schedule the next while entries remain."""
        if self._state is not TransportState.CONNECTED:
            return
        batch = self._queue.take(self._batch_size)
        for index, entry in enumerate(batch):
            if not self._transmit(entry):
                self._drop(self._queue.requeue(batch[index:]))
                self._fail()
                return
        if self._queue:
            self._drain_handle = self._scheduler.call_later(self._drain_interval, self._on_drain_timer)

    def _transmit(self, entry: PendingDelivery) -> bool:
        """Hand one record to the socket.

        Returns False only when the socket failed; a record that cannot be
        encoded or is too large for a datagram is consumed and reported.
        """
        try:
            payload = encode_payload(entry.record)
        except (TypeError, ValueError) as exc:
            self._stats.failed += 1
            entry.resolve(False)
            logger.error("graylog_serialization_failed", error=str(exc))
            return True

        try:
            self._sock.sendto(payload, self._address)
        except OSError as exc:
            if exc.errno == errno.EMSGSIZE:
                self._stats.failed += 1
                entry.resolve(False)
                logger.error("graylog_datagram_too_large", size=len(payload))
                return True
            logger.warning("graylog_send_failed", host=self.host, port=self.port, error=str(exc))
            return False

        self._stats.sent += 1
        entry.resolve(True)
        return True

    def _enqueue(self, entry: PendingDelivery) -> None:
        evicted = self._queue.append(entry)
        if evicted is not None:
            self._drop([evicted])

    def _drop(self, entries: list[PendingDelivery]) -> None:
        for entry in entries:
            entry.resolve(False)
        self._stats.dropped += len(entries)

    def _fail(self) -> None:
        """Move to DISCONNECTED and arm the single reconnect timer."""
        self._release_socket()
        self._cancel(self._drain_handle)
        self._drain_handle = None
        self._state = TransportState.DISCONNECTED

        self._cancel(self._connect_handle)
        self._connect_handle = self._scheduler.call_later(self._reconnect_interval, self._on_reconnect_timer)
        self._state = TransportState.RECONNECT_PENDING
        logger.warning("graylog_reconnect_scheduled", delay=self._reconnect_interval, queued=len(self._queue))

    def _release_socket(self) -> None:
        sock, self._sock = self._sock, None
        self._address = None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as exc:
            logger.debug("graylog_socket_close_failed", error=str(exc))

    @staticmethod
    def _cancel(handle: ScheduledHandle | None) -> None:
        if handle is not None:
            handle.cancel()


__all__ = [
    "ConnectivityResult",
    "DeliveryQueue",
    "GraylogTransport",
    "PendingDelivery",
    "TransportState",
    "TransportStats",
    "encode_payload",
    "resolve_endpoint",
    "udp_socket",
]
