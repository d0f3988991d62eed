"""Continuous velocity control from keyboard and pointer input.

The controller turns discrete input events into a stream of
``geometry_msgs/Twist`` commands:

* held direction keys are sampled by a fixed-cadence loop;
* pointer drags publish on every move;
* releasing input, pressing the stop key, or losing the connection always
  produces the zero command.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, ClassVar

from zeusbridge._constants import DEFAULT_COMMAND_RATE_HZ
from zeusbridge.channel import Direction, TopicChannel
from zeusbridge.config import BridgeConfig
from zeusbridge.connection import BusConnection, ConnectionState
from zeusbridge.exceptions import BridgeTopicError
from zeusbridge.models import MessageKind, Twist

_logger = logging.getLogger(__name__)

KeySet = frozenset[str]


def _fold_key(key: str) -> str:
    key = key.lower()
    if key == "space":
        return " "
    return key


@dataclass(frozen=True)
class KeyBindings:
    """Key names for each direction plus the stop key (space by default).

    Bindings are case-folded, so ``KeyBindings(forward="W")`` matches both
    ``"w"`` and ``"W"``.
    """

    forward: str = "w"
    backward: str = "s"
    left: str = "a"
    right: str = "d"
    stop: str = " "

    def __post_init__(self) -> None:
        for name in ("forward", "backward", "left", "right", "stop"):
            object.__setattr__(self, name, _fold_key(getattr(self, name)))

    @property
    def direction_keys(self) -> KeySet:
        return frozenset((self.forward, self.backward, self.left, self.right))

    def normalize(self, key: str) -> str:
        return _fold_key(key)


@dataclass(frozen=True)
class VelocityCommand:
    """Normalised command; both components lie in [-1, 1]."""

    linear: float = 0.0
    angular: float = 0.0

    STOP: ClassVar[VelocityCommand]

    @property
    def is_stop(self) -> bool:
        return self.linear == 0.0 and self.angular == 0.0

    def to_twist(self, max_linear_speed: float = 1.0, max_angular_speed: float = 1.0) -> Twist:
        return Twist.planar(self.linear * max_linear_speed, self.angular * max_angular_speed)


VelocityCommand.STOP = VelocityCommand()


@dataclass(frozen=True)
class PointerVector:
    """Pointer offset from the drag origin, already clamped to the radius."""

    x: float = 0.0
    y: float = 0.0

    @property
    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)


def clamp_to_disk(x: float, y: float, radius: float) -> PointerVector:
    """Project (*x*, *y*) onto the disk of *radius*, keeping its angle."""
    distance = math.hypot(x, y)
    if distance <= radius:
        return PointerVector(x, y)
    scale = radius / distance
    return PointerVector(x * scale, y * scale)


def command_from_keys(keys: Iterable[str], bindings: KeyBindings = KeyBindings()) -> VelocityCommand:
    """Sum ±1 per held key; opposing keys cancel out."""
    held = set(keys)
    linear = 0.0
    angular = 0.0
    if bindings.forward in held:
        linear += 1.0
    if bindings.backward in held:
        linear -= 1.0
    if bindings.left in held:
        angular += 1.0
    if bindings.right in held:
        angular -= 1.0
    return VelocityCommand(linear, angular)


def command_from_pointer(x: float, y: float, radius: float) -> VelocityCommand:
    """Command for a pointer offset; screen y grows downward, so up is forward."""
    clamped = clamp_to_disk(x, y, radius)
    linear = -clamped.y / radius
    angular = -clamped.x / radius
    # Avoid publishing negative zero.
    return VelocityCommand(linear + 0.0, angular + 0.0)


class VelocityController:
    """Fail-safe teleoperation controller bound to a ``Twist`` publish channel.

    One long-lived instance is meant to be owned by the application shell;
    views forward their input events to it.

    Parameters
    ----------
    channel
        Publish channel of kind ``geometry_msgs/Twist``.
    rate_hz
        Cadence of the held-key publish loop.
    max_linear_speed, max_angular_speed
        Scale applied to the normalised command.
    pointer_radius
        Drag distance that maps to full speed.
    bindings
        Direction and stop keys.
    """

    def __init__(
        self,
        channel: TopicChannel[Twist],
        *,
        rate_hz: float = DEFAULT_COMMAND_RATE_HZ,
        max_linear_speed: float = 1.0,
        max_angular_speed: float = 1.0,
        pointer_radius: float = 1.0,
        bindings: KeyBindings = KeyBindings(),
    ) -> None:
        if channel.direction is not Direction.PUBLISH or channel.kind is not MessageKind.TWIST:
            raise BridgeTopicError(f"{channel!r} is not a Twist publish channel")
        if rate_hz <= 0:
            raise ValueError(f"rate_hz must be positive, got {rate_hz}")
        if pointer_radius <= 0:
            raise ValueError(f"pointer_radius must be positive, got {pointer_radius}")

        self._channel = channel
        self._period = 1.0 / rate_hz
        self._max_linear_speed = max_linear_speed
        self._max_angular_speed = max_angular_speed
        self._pointer_radius = pointer_radius
        self._bindings = bindings

        self._keys: set[str] = set()
        self._pointer: PointerVector | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._last_command = VelocityCommand.STOP
        self._owns_channel = False
        self._closed = False
        self._unsubscribe_status = channel.connection.on_status_change(self._on_status)

    @classmethod
    def from_config(cls, connection: BusConnection, config: BridgeConfig) -> VelocityController:
        """Build a controller that owns a fresh publish channel on ``config.cmd_vel_topic``."""
        channel: TopicChannel[Twist] = TopicChannel(
            connection,
            config.cmd_vel_topic,
            Direction.PUBLISH,
            MessageKind.TWIST,
        )
        controller = cls(
            channel,
            rate_hz=config.command_rate_hz,
            max_linear_speed=config.max_linear_speed,
            max_angular_speed=config.max_angular_speed,
            pointer_radius=config.pointer_radius,
        )
        controller._owns_channel = True
        return controller

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def channel(self) -> TopicChannel[Twist]:
        return self._channel

    @property
    def held_keys(self) -> KeySet:
        return frozenset(self._keys)

    @property
    def pointer(self) -> PointerVector | None:
        """Current clamped drag vector, or ``None`` when not dragging."""
        return self._pointer

    @property
    def dragging(self) -> bool:
        return self._pointer is not None

    @property
    def loop_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def last_command(self) -> VelocityCommand:
        return self._last_command

    def current_command(self) -> VelocityCommand:
        if self._pointer is not None:
            return command_from_pointer(self._pointer.x, self._pointer.y, self._pointer_radius)
        return command_from_keys(self._keys, self._bindings)

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def on_key_down(self, key: str) -> None:
        key = self._bindings.normalize(key)
        if key == self._bindings.stop:
            self.emergency_stop()
            return
        if key not in self._bindings.direction_keys:
            return
        if self._closed:
            _logger.debug("Ignoring key %r on a closed controller", key)
            return
        if not self._channel.connection.is_connected:
            _logger.debug("Ignoring key %r while the bus is not connected", key)
            return
        # Keys take over from an active drag.
        self._pointer = None
        self._keys.add(key)
        if not self.loop_running:
            self._start_loop()

    def on_key_up(self, key: str) -> None:
        key = self._bindings.normalize(key)
        if key not in self._keys:
            return
        self._keys.discard(key)
        if not self._keys:
            self._stop_loop()
            self._publish(VelocityCommand.STOP)

    def emergency_stop(self) -> None:
        """Drop all input and publish the zero command now."""
        self._keys.clear()
        self._pointer = None
        self._stop_loop()
        self._publish(VelocityCommand.STOP)

    def tick(self) -> VelocityCommand:
        """Publish the command for the current input and return it."""
        if self._closed:
            return VelocityCommand.STOP
        command = self.current_command()
        self._publish(command)
        return command

    # ------------------------------------------------------------------
    # Pointer
    # ------------------------------------------------------------------

    def on_pointer_down(self) -> None:
        if self._closed:
            return
        if not self._channel.connection.is_connected:
            _logger.debug("Ignoring drag while the bus is not connected")
            return
        # A drag takes over from held keys.
        self._keys.clear()
        self._stop_loop()
        self._pointer = PointerVector()

    def on_pointer_move(self, x: float, y: float) -> None:
        if self._pointer is None or self._closed:
            return
        self._pointer = clamp_to_disk(x, y, self._pointer_radius)
        self._publish(command_from_pointer(self._pointer.x, self._pointer.y, self._pointer_radius))

    def on_pointer_up(self) -> None:
        self._pointer = None
        self._publish(VelocityCommand.STOP)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release input, stop listening to the connection, dispose an owned channel."""
        if self._closed:
            return
        self._closed = True
        self.emergency_stop()
        self._unsubscribe_status()
        if self._owns_channel:
            self._channel.dispose()

    def __enter__(self) -> VelocityController:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _publish(self, command: VelocityCommand) -> None:
        self._last_command = command
        self._channel.publish(command.to_twist(self._max_linear_speed, self._max_angular_speed))

    def _start_loop(self) -> None:
        self._loop_task = asyncio.get_running_loop().create_task(self._run_loop())

    def _stop_loop(self) -> None:
        task, self._loop_task = self._loop_task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._period)
            self.tick()

    def _on_status(self, state: ConnectionState) -> None:
        if state is ConnectionState.CONNECTED:
            return
        if self._keys or self._pointer is not None or self.loop_running:
            _logger.info("Bus %s, releasing teleop input", state.value)
            self.emergency_stop()
