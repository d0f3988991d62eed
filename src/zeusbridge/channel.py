"""Typed publish/subscribe handle for one topic on a bus connection."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from zeusbridge import _protocol
from zeusbridge._observers import ObserverList
from zeusbridge.exceptions import BridgeTopicError, MalformedPayloadError
from zeusbridge.models import MessageKind, RosMessage, decode_message

if TYPE_CHECKING:
    from zeusbridge.connection import BridgeHandle, BusConnection

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=RosMessage)

_op_ids = itertools.count(1)


class Direction(StrEnum):
    PUBLISH = "publish"
    SUBSCRIBE = "subscribe"


class TopicChannel(Generic[M]):
    """A topic registration owned by one consumer.

    Publish channels advertise the topic, subscribe channels subscribe to
    it.  Registration happens immediately when the connection is up and is
    otherwise deferred to the next successful open; the connection replays
    it after every reconnect.

    The channel never caches the socket.  Each publish asks the connection
    for its current handle, so messages sent while not connected are
    dropped rather than queued.
    """

    def __init__(
        self,
        connection: BusConnection,
        name: str,
        direction: Direction,
        kind: MessageKind,
        *,
        throttle_rate: int = 0,
        queue_length: int = 0,
    ) -> None:
        if not name:
            raise BridgeTopicError("Topic name must not be empty")
        self._connection = connection
        self._name = name
        self._direction = Direction(direction)
        self._kind = MessageKind(kind)
        self._throttle_rate = throttle_rate
        self._queue_length = queue_length
        self._op_id = f"{self._direction.value}:{name}:{next(_op_ids)}"
        self._callbacks: ObserverList[[M]] = ObserverList(f"Subscriber of {name}")
        self._disposed = False

        connection._attach(self)
        handle = connection.current_handle()
        if handle is not None:
            self._register(handle)

    @classmethod
    def publisher(cls, connection: BusConnection, name: str, kind: MessageKind) -> TopicChannel[Any]:
        return cls(connection, name, Direction.PUBLISH, kind)

    @classmethod
    def subscriber(
        cls,
        connection: BusConnection,
        name: str,
        kind: MessageKind,
        *,
        throttle_rate: int = 0,
        queue_length: int = 0,
    ) -> TopicChannel[Any]:
        return cls(
            connection,
            name,
            Direction.SUBSCRIBE,
            kind,
            throttle_rate=throttle_rate,
            queue_length=queue_length,
        )

    def __enter__(self) -> TopicChannel[M]:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"TopicChannel({self._name!r}, {self._direction.value}, {self._kind.value})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def kind(self) -> MessageKind:
        return self._kind

    @property
    def connection(self) -> BusConnection:
        return self._connection

    @property
    def disposed(self) -> bool:
        return self._disposed

    def publish(self, message: M | Mapping[str, Any]) -> bool:
        """Send *message* on the topic.

        Returns ``False`` (and sends nothing) when the channel is disposed
        or the connection is not up.
        """
        if self._direction is not Direction.PUBLISH:
            raise BridgeTopicError(f"{self._name} is a subscribe channel")
        if self._disposed:
            return False
        handle = self._connection.current_handle()
        if handle is None:
            return False
        payload = message.to_payload() if isinstance(message, RosMessage) else dict(message)
        return handle.send(_protocol.publish_op(self._name, payload))

    def subscribe(self, callback: Callable[[M], None]) -> Callable[[], None]:
        """Call *callback* with each validated inbound message.

        Returns a callable that removes the callback.
        """
        if self._direction is not Direction.SUBSCRIBE:
            raise BridgeTopicError(f"{self._name} is a publish channel")
        return self._callbacks.add(callback)

    def dispose(self) -> None:
        """Unregister the topic and drop all callbacks.  Safe to call twice."""
        if self._disposed:
            return
        self._disposed = True
        handle = self._connection.current_handle()
        if handle is not None:
            if self._direction is Direction.PUBLISH:
                handle.send(_protocol.unadvertise_op(self._name, op_id=self._op_id))
            else:
                handle.send(_protocol.unsubscribe_op(self._name, op_id=self._op_id))
        self._connection._detach(self)
        self._callbacks.clear()

    # ------------------------------------------------------------------
    # Connection hooks
    # ------------------------------------------------------------------

    def accepts(self, topic: str | None) -> bool:
        return not self._disposed and self._direction is Direction.SUBSCRIBE and topic == self._name

    def _register(self, handle: BridgeHandle) -> None:
        if self._disposed:
            return
        if self._direction is Direction.PUBLISH:
            op = _protocol.advertise_op(self._name, self._kind.value, op_id=self._op_id)
        else:
            op = _protocol.subscribe_op(
                self._name,
                self._kind.value,
                op_id=self._op_id,
                throttle_rate=self._throttle_rate,
                queue_length=self._queue_length,
            )
        _logger.debug("Registering %r", self)
        handle.send(op)

    def _deliver(self, payload: dict[str, Any]) -> None:
        try:
            message = decode_message(self._kind, payload, topic=self._name)
        except MalformedPayloadError as exc:
            _logger.warning("Dropping malformed message: %s", exc)
            return
        self._callbacks.notify(message)  # type: ignore[arg-type]
