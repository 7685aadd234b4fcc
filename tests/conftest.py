import errno
import os
import socket
import typing as t

import orjson
import pytest

from safelog.config import ConsoleSettings, GraylogSettings
from safelog.transport import GraylogTransport


class ManualHandle:
    def __init__(self, when: float, callback: t.Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler: callbacks only run when the test advances the clock."""

    def __init__(self):
        self.now = 0.0
        self.handles: list[ManualHandle] = []

    def call_later(self, delay: float, callback: t.Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float = 0.0) -> None:
        target = self.now + seconds
        while True:
            due = sorted((h for h in self.live if h.when <= target), key=lambda h: h.when)
            if not due:
                break
            handle = due[0]
            self.now = max(self.now, handle.when)
            handle.fired = True
            handle.callback()
        self.now = target


class FakeSocket:
    def __init__(self, network: "FakeNetwork"):
        self.network = network
        self.sent: list[tuple[bytes, t.Any]] = []
        self.close_calls = 0

    def sendto(self, payload: bytes, address: t.Any) -> int:
        if self.network.send_error is not None:
            raise self.network.send_error
        if self.network.fail_after is not None and len(self.network.payloads) >= self.network.fail_after:
            raise OSError(errno.ENETUNREACH, "Network is unreachable")
        self.sent.append((payload, address))
        return len(payload)

    def close(self) -> None:
        self.close_calls += 1


class FakeNetwork:
    """Stands in for name resolution and UDP sockets."""

    def __init__(self):
        self.sockets: list[FakeSocket] = []
        self.open_attempts = 0
        self.open_error: Exception | None = None
        self.send_error: Exception | None = None
        self.fail_after: int | None = None

    def resolver(self, host: str, port: int) -> tuple[int, t.Any]:
        return socket.AF_INET, (host, port)

    def socket_factory(self, family: int) -> FakeSocket:
        self.open_attempts += 1
        if self.open_error is not None:
            raise self.open_error
        sock = FakeSocket(self)
        self.sockets.append(sock)
        return sock

    @property
    def payloads(self) -> list[bytes]:
        return [payload for sock in self.sockets for payload, _ in sock.sent]

    def messages(self) -> list[t.Any]:
        return [orjson.loads(payload) for payload in self.payloads]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def make_transport(scheduler, network):
    """Factory for transports wired to the manual scheduler and fake network."""
    created: list[GraylogTransport] = []

    def _make(**kwargs: t.Any) -> GraylogTransport:
        kwargs.setdefault("socket_factory", network.socket_factory)
        kwargs.setdefault("resolver", network.resolver)
        transport = GraylogTransport("graylog.test", 12201, scheduler=scheduler, **kwargs)
        created.append(transport)
        return transport

    yield _make
    for transport in created:
        transport.close()


@pytest.fixture
def graylog_settings():
    def _settings(**overrides: t.Any) -> GraylogSettings:
        return GraylogSettings(_env_file=None, **overrides)

    return _settings


@pytest.fixture
def quiet_console() -> ConsoleSettings:
    return ConsoleSettings(_env_file=None, enabled=False)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep settings tests independent of the developer's shell."""
    for name in list(os.environ):
        if name.startswith(("GRAYLOG_", "SAFELOG_")) or name == "ENV_FILE_PATH":
            monkeypatch.delenv(name, raising=False)
    yield
