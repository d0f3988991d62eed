from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from zeusbridge.connection import BusConnection, ConnectionState
from zeusbridge.exceptions import BridgeTransportError
from zeusbridge.reconnect import ReconnectPolicy

URL = "ws://robot.local:9090"


class FakeSocket:
    """In-memory socket: records sent frames, replays queued inbound ones."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._inbox: asyncio.Queue[str | None | BridgeTransportError] = asyncio.Queue()

    async def send_text(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def receive_text(self) -> str | None:
        item = await self._inbox.get()
        if isinstance(item, BridgeTransportError):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True

    def feed(self, frame: dict[str, Any] | str) -> None:
        self._inbox.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def hang_up(self) -> None:
        self._inbox.put_nowait(None)

    def fail(self) -> None:
        self._inbox.put_nowait(BridgeTransportError("connection reset", url=URL))

    def ops(self, op: str) -> list[dict[str, Any]]:
        return [frame for frame in self.sent if frame["op"] == op]


class FakeTransport:
    def __init__(self) -> None:
        self.sockets: list[FakeSocket] = []
        self.urls: list[str] = []
        self.fail_next = 0
        self.always_fail = False
        self.closed = False

    @property
    def socket(self) -> FakeSocket:
        return self.sockets[-1]

    async def open(self, url: str) -> FakeSocket:
        self.urls.append(url)
        if self.always_fail or self.fail_next > 0:
            self.fail_next = max(0, self.fail_next - 1)
            raise BridgeTransportError(f"Connecting to {url} failed: refused", url=url)
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket

    async def close(self) -> None:
        self.closed = True


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.fired = True
        self.callback()


class RecordingScheduler:
    """Stands in for ``loop.call_later`` so tests fire retry timers by hand."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def delays(self) -> list[float]:
        return [timer.delay for timer in self.timers]

    @property
    def pending(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled and not timer.fired]

    def fire_next(self) -> None:
        self.pending[0].fire()


async def _drain() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def drain() -> Callable[[], Awaitable[None]]:
    return _drain


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def connection(transport: FakeTransport, scheduler: RecordingScheduler) -> BusConnection:
    return BusConnection(
        URL,
        transport=transport,
        policy=ReconnectPolicy(base_delay=2.0, max_attempts=5),
        service_timeout=1.0,
        call_later=scheduler,
    )


@pytest.fixture
def connect(connection: BusConnection) -> Callable[[], Awaitable[BusConnection]]:
    async def _connect() -> BusConnection:
        connection.connect()
        await _drain()
        assert connection.state is ConnectionState.CONNECTED
        return connection

    return _connect
