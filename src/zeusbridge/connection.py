"""Persistent rosbridge bus connection.

Owns:
- the single WebSocket to the robot and its reader/writer tasks
- the connection state machine and the bounded, backed-off retry timer
- status fan-out to observers, in transition order
- routing of inbound frames to topic channels and service calls
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from zeusbridge import _protocol
from zeusbridge._constants import DEFAULT_URL
from zeusbridge._observers import ObserverList
from zeusbridge._redact import redact_for_log
from zeusbridge._transport import Socket, Transport, WebSocketTransport
from zeusbridge.config import BridgeConfig
from zeusbridge.exceptions import (
    BridgeError,
    BridgeNotConnectedError,
    BridgeServiceError,
    BridgeTransportError,
    MalformedPayloadError,
    ReconnectExhaustedError,
)
from zeusbridge.reconnect import ReconnectPolicy

if TYPE_CHECKING:
    from zeusbridge.channel import TopicChannel

_logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


StatusObserver = Callable[[ConnectionState], None]


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


CallLater = Callable[[float, Callable[[], None]], Cancellable]


class BridgeHandle:
    """Live handle for one open socket.

    Frames are queued and written in order by the socket's writer task.
    After :meth:`detach` (socket lost or superseded) sends are dropped.
    """

    def __init__(self, socket: Socket, url: str) -> None:
        self._socket = socket
        self._url = url
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._attached = True

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def url(self) -> str:
        return self._url

    def send(self, op: dict[str, Any]) -> bool:
        """Queue *op* for writing; returns False when the handle is detached."""
        if not self._attached:
            return False
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("-> %s", redact_for_log(op))
        self._outbox.put_nowait(_protocol.encode(op))
        return True

    def detach(self) -> None:
        self._attached = False
        while not self._outbox.empty():
            self._outbox.get_nowait()

    async def pump(self) -> None:
        """Write queued frames until cancelled or the socket fails."""
        while True:
            frame = await self._outbox.get()
            if not self._attached:
                continue
            try:
                await self._socket.send_text(frame)
            except BridgeTransportError as exc:
                _logger.warning("Write to %s failed, closing socket: %s", self._url, exc)
                self.detach()
                await self._socket.close()
                return


class BusConnection:
    """Single long-lived bus connection with bounded reconnection.

    Usage::

        connection = BusConnection.from_config(config)
        unsubscribe = connection.on_status_change(print)
        connection.connect()
        ...
        await connection.close()

    The state is only changed by internal transition handlers.  One
    instance is meant to be owned by the application and passed to every
    consumer.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        transport: Transport | None = None,
        policy: ReconnectPolicy | None = None,
        service_timeout: float = 5.0,
        call_later: CallLater | None = None,
    ) -> None:
        self._url = url or DEFAULT_URL
        self._transport: Transport = transport if transport is not None else WebSocketTransport()
        self._policy = policy or ReconnectPolicy()
        self._service_timeout = service_timeout
        self._call_later = call_later

        self._state = ConnectionState.DISCONNECTED
        self._observers: ObserverList[[ConnectionState]] = ObserverList("Status observer")
        self._pending_states: deque[ConnectionState] = deque()
        self._notifying = False

        self._attempt = 0
        self._exhausted = False
        self._last_error: BridgeError | None = None
        self._retry_handle: Cancellable | None = None

        # Bumped on every open and on disconnect; events from older socket
        # tasks are ignored.
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._handle: BridgeHandle | None = None

        self._channels: list[TopicChannel[Any]] = []
        self._service_waiters: dict[str, tuple[str, asyncio.Future[dict[str, Any]]]] = {}
        self._call_ids = itertools.count(1)

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig,
        *,
        url: str | None = None,
        transport: Transport | None = None,
        call_later: CallLater | None = None,
    ) -> BusConnection:
        return cls(
            url or config.url,
            transport=transport if transport is not None else WebSocketTransport.from_config(config),
            policy=ReconnectPolicy.from_config(config),
            service_timeout=config.service_timeout,
            call_later=call_later,
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BusConnection:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def url(self) -> str:
        return self._url

    @property
    def policy(self) -> ReconnectPolicy:
        return self._policy

    @property
    def attempt(self) -> int:
        """Number of the most recently scheduled reconnection attempt (0 after a successful open)."""
        return self._attempt

    @property
    def retries_exhausted(self) -> bool:
        return self._exhausted

    @property
    def last_error(self) -> BridgeError | None:
        """Error behind the current ``ERROR`` state, if any."""
        return self._last_error

    def current_handle(self) -> BridgeHandle | None:
        """The live transport handle, or ``None`` when not connected."""
        if self._state is not ConnectionState.CONNECTED:
            return None
        return self._handle

    def on_status_change(self, observer: StatusObserver) -> Callable[[], None]:
        """Call *observer* with the new state on every transition.

        Returns a callable that deregisters the observer.
        """
        return self._observers.add(observer)

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    def connect(self, url: str | None = None) -> None:
        """Start connecting; no-op while already connecting or connected.

        Resets the attempt budget, so this also leaves the terminal error
        state reached after exhausted retries.
        """
        if url is not None:
            self._url = url
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return
        self._cancel_retry()
        self._attempt = 0
        self._exhausted = False
        self._last_error = None
        self._open()

    def disconnect(self) -> None:
        """Close the socket and stop reconnecting."""
        self._cancel_retry()
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self._drop_handle()
        self._attempt = 0
        self._exhausted = False
        if self._state is not ConnectionState.DISCONNECTED:
            _logger.info("Disconnected from %s", self._url)
            self._set_state(ConnectionState.DISCONNECTED)

    async def close(self) -> None:
        """Disconnect, wait for the socket to close and release the transport."""
        task = self._task
        self.disconnect()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        await self._transport.close()

    def set_url(self, url: str) -> None:
        """Point the connection at *url*, reconnecting if it is active."""
        self._url = url
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            self.disconnect()
            self.connect()

    # ------------------------------------------------------------------
    # Service calls
    # ------------------------------------------------------------------

    async def call_service(
        self,
        service: str,
        args: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Call a ROS service through rosbridge and return its ``values``."""
        handle = self.current_handle()
        if handle is None:
            raise BridgeNotConnectedError(f"Cannot call {service}: bus is {self._state.value}")

        call_id = f"call_service:{service}:{next(self._call_ids)}"
        future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._service_waiters[call_id] = (service, future)
        handle.send(_protocol.call_service_op(service, dict(args or {}), call_id=call_id))

        effective_timeout = timeout if timeout is not None else self._service_timeout
        try:
            return await asyncio.wait_for(future, effective_timeout)
        except TimeoutError as exc:
            raise BridgeServiceError(
                f"{service} did not respond within {effective_timeout}s",
                service=service,
            ) from exc
        finally:
            self._service_waiters.pop(call_id, None)

    # ------------------------------------------------------------------
    # Channel registry (used by TopicChannel)
    # ------------------------------------------------------------------

    def _attach(self, channel: TopicChannel[Any]) -> None:
        if channel not in self._channels:
            self._channels.append(channel)

    def _detach(self, channel: TopicChannel[Any]) -> None:
        if channel in self._channels:
            self._channels.remove(channel)

    # ------------------------------------------------------------------
    # State machine internals
    # ------------------------------------------------------------------

    def _set_state(self, state: ConnectionState, *, force: bool = False) -> None:
        if state is self._state and not force:
            return
        self._state = state
        self._pending_states.append(state)
        if self._notifying:
            # A transition raised from inside an observer is delivered after
            # the current one reaches every observer.
            return
        self._notifying = True
        try:
            while self._pending_states:
                self._observers.notify(self._pending_states.popleft())
        finally:
            self._notifying = False

    def _open(self) -> None:
        loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        _logger.info("Connecting to %s", self._url)
        self._set_state(ConnectionState.CONNECTING)
        if generation != self._generation:
            return
        self._task = loop.create_task(self._run(self._url, generation))

    def _schedule_retry(self) -> None:
        next_attempt = self._attempt + 1
        if not self._policy.should_retry(next_attempt):
            self._exhausted = True
            self._last_error = ReconnectExhaustedError(
                f"Gave up reconnecting to {self._url} after {self._attempt} attempt(s)",
                url=self._url,
                attempts=self._attempt,
            )
            _logger.error("Max reconnection attempts reached (%d) for %s", self._policy.max_attempts, self._url)
            self._set_state(ConnectionState.ERROR, force=True)
            return

        self._attempt = next_attempt
        delay = self._policy.next_delay(next_attempt)
        _logger.info(
            "Attempting to reconnect to %s (%d/%d) in %.1fs",
            self._url,
            next_attempt,
            self._policy.max_attempts,
            delay,
        )
        if self._call_later is not None:
            self._retry_handle = self._call_later(delay, self._retry)
        else:
            self._retry_handle = asyncio.get_running_loop().call_later(delay, self._retry)

    def _retry(self) -> None:
        self._retry_handle = None
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return
        self._open()

    def _cancel_retry(self) -> None:
        handle, self._retry_handle = self._retry_handle, None
        if handle is not None:
            handle.cancel()

    def _drop_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.detach()
        waiters = list(self._service_waiters.values())
        self._service_waiters.clear()
        for service, future in waiters:
            if not future.done():
                future.set_exception(BridgeServiceError(f"Connection lost while calling {service}", service=service))

    def _on_open(self, generation: int, handle: BridgeHandle) -> None:
        if generation != self._generation:
            return
        _logger.info("Connected to %s", handle.url)
        self._attempt = 0
        self._exhausted = False
        self._last_error = None
        self._handle = handle
        for channel in list(self._channels):
            channel._register(handle)
        self._set_state(ConnectionState.CONNECTED)

    def _on_lost(self, generation: int, failure: BridgeTransportError | None) -> None:
        if generation != self._generation:
            return
        self._drop_handle()
        if failure is not None:
            _logger.warning("Bus connection error: %s", failure)
            self._last_error = failure
            self._set_state(ConnectionState.ERROR)
        else:
            _logger.info("Connection to %s closed", self._url)
            self._set_state(ConnectionState.DISCONNECTED)
        # An observer may have reconnected or disconnected in the meantime.
        if generation == self._generation:
            self._schedule_retry()

    async def _run(self, url: str, generation: int) -> None:
        try:
            socket = await self._transport.open(url)
        except BridgeTransportError as exc:
            self._on_lost(generation, exc)
            return
        if generation != self._generation:
            await socket.close()
            return

        handle = BridgeHandle(socket, url)
        writer = asyncio.get_running_loop().create_task(handle.pump())
        try:
            self._on_open(generation, handle)
            failure = await self._read(socket)
            handle.detach()
            self._on_lost(generation, failure)
        finally:
            handle.detach()
            writer.cancel()
            (outcome,) = await asyncio.gather(writer, return_exceptions=True)
            if isinstance(outcome, Exception):
                _logger.error("Writer for %s failed", url, exc_info=outcome)
            await socket.close()

    async def _read(self, socket: Socket) -> BridgeTransportError | None:
        while True:
            try:
                text = await socket.receive_text()
            except BridgeTransportError as exc:
                return exc
            if text is None:
                return None
            try:
                self._dispatch(text)
            except Exception:
                _logger.exception("Failed to dispatch inbound frame")

    def _dispatch(self, text: str) -> None:
        try:
            frame = _protocol.decode_frame(text)
        except MalformedPayloadError as exc:
            _logger.warning("Dropping malformed frame: %s", exc)
            return
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("<- %s", redact_for_log(frame.body))

        if frame.op == "publish":
            for channel in list(self._channels):
                if channel.accepts(frame.topic):
                    channel._deliver(frame.msg)
            return
        if frame.op == "service_response":
            self._resolve_service(frame)
            return
        if frame.op == "status":
            level = str(frame.body.get("level", "info")).lower()
            log_level = logging.WARNING if level in ("error", "warning") else logging.INFO
            _logger.log(log_level, "rosbridge status (%s): %s", level, frame.body.get("msg", ""))
            return
        _logger.debug("Ignoring rosbridge op %s", frame.op)

    def _resolve_service(self, frame: _protocol.InboundFrame) -> None:
        entry = self._service_waiters.get(frame.call_id) if frame.call_id else None
        if entry is None:
            _logger.debug("Unmatched service_response id=%s", frame.call_id)
            return
        service, future = entry
        if future.done():
            return
        values = frame.body.get("values")
        if frame.body.get("result") is False:
            future.set_exception(BridgeServiceError(f"{service} failed: {values}", service=service))
            return
        future.set_result(values if isinstance(values, dict) else {})
