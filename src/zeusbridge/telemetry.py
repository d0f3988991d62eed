"""Latest-value telemetry cache fed by topic subscriptions."""

from __future__ import annotations

import logging
import re
from collections import Counter, deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from zeusbridge._constants import (
    BATTERY_TOPIC,
    CMD_VEL_TOPIC,
    DIAGNOSTICS_TOPIC,
    MISSION_QUEUE_TOPIC,
    MISSION_STATUS_TOPIC,
    POSE_TOPIC,
    ROBOT_STATE_TOPIC,
    ROSOUT_TOPIC,
)
from zeusbridge._observers import ObserverList
from zeusbridge.channel import TopicChannel
from zeusbridge.connection import BusConnection
from zeusbridge.models import (
    BatteryState,
    DiagnosticArray,
    DiagnosticLevel,
    LogMessage,
    MessageKind,
    Mission,
    MissionQueue,
    MissionStatus,
    PoseStamped,
    StringMessage,
    Twist,
)

_logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^\s*(\d+)")


class RobotMode(StrEnum):
    AUTO = "AUTO"
    MANUAL = "MANUAL"
    ERROR = "ERROR"


def robot_mode(state_text: str) -> RobotMode:
    """Derive the operating mode from the free-form ``/robot_state`` text."""
    upper = state_text.upper()
    if "MANUAL" in upper:
        return RobotMode.MANUAL
    if "ERROR" in upper:
        return RobotMode.ERROR
    return RobotMode.AUTO


@dataclass(frozen=True)
class SystemHealth:
    """Subsystem summary derived from ``/diagnostics``.

    ``cpu`` is ``None`` until a cpu status reports a leading integer.
    """

    motors: str = "OK"
    lidar: str = "OK"
    network: str = "OK"
    cpu: int | None = None


def system_health(diagnostics: DiagnosticArray) -> SystemHealth:
    motors = lidar = network = "OK"
    cpu: int | None = None
    for status in diagnostics.status:
        flag = "OK" if status.level is DiagnosticLevel.OK else "ERROR"
        name = status.name.lower()
        if "motor" in name:
            motors = flag
        elif "lidar" in name:
            lidar = flag
        elif "network" in name:
            network = flag
        elif "cpu" in name:
            match = _LEADING_NUMBER.match(status.message)
            if match:
                cpu = int(match.group(1))
    return SystemHealth(motors=motors, lidar=lidar, network=network, cpu=cpu)


@dataclass(frozen=True)
class TelemetryTopics:
    battery: str = BATTERY_TOPIC
    pose: str = POSE_TOPIC
    robot_state: str = ROBOT_STATE_TOPIC
    mission_status: str = MISSION_STATUS_TOPIC
    mission_queue: str = MISSION_QUEUE_TOPIC
    diagnostics: str = DIAGNOSTICS_TOPIC
    rosout: str = ROSOUT_TOPIC
    velocity: str = CMD_VEL_TOPIC


UpdateCallback = Callable[[str, Any], None]


class TelemetryFeed:
    """Subscribes to the robot's telemetry topics and keeps the latest values.

    Observers registered with :meth:`on_update` are called with the name of
    the field that changed (``battery``, ``pose``, ``robot_state``,
    ``mission_status``, ``mission_queue``, ``diagnostics``, ``velocity``,
    ``log``) and its new value.

    ``log_counts`` tallies received ``/rosout`` entries by level name
    (``WARN``, ``ERROR``, ``FATAL`` ...); it is not capped by the history.
    """

    def __init__(
        self,
        connection: BusConnection,
        topics: TelemetryTopics = TelemetryTopics(),
        *,
        log_history: int = 100,
    ) -> None:
        self._topics = topics
        self._observers: ObserverList[[str, Any]] = ObserverList("Telemetry observer")

        self.battery: BatteryState | None = None
        self.pose: PoseStamped | None = None
        self.robot_state: str | None = None
        self.mission_status: MissionStatus | None = None
        self.mission_queue: list[Mission] = []
        self.diagnostics: DiagnosticArray | None = None
        self.velocity: Twist | None = None
        self.logs: deque[LogMessage] = deque(maxlen=log_history)
        self.log_counts: Counter[str] = Counter()

        self._channels: list[TopicChannel[Any]] = []
        self._listen(connection, topics.battery, MessageKind.BATTERY_STATE, self._on_battery)
        self._listen(connection, topics.pose, MessageKind.POSE_STAMPED, self._on_pose)
        self._listen(connection, topics.robot_state, MessageKind.STRING, self._on_robot_state)
        self._listen(connection, topics.mission_status, MessageKind.STRING, self._on_mission_status)
        self._listen(connection, topics.mission_queue, MessageKind.STRING, self._on_mission_queue)
        self._listen(connection, topics.diagnostics, MessageKind.DIAGNOSTIC_ARRAY, self._on_diagnostics)
        self._listen(connection, topics.rosout, MessageKind.LOG, self._on_log)
        self._listen(connection, topics.velocity, MessageKind.TWIST, self._on_velocity)

    def _listen(self, connection: BusConnection, topic: str, kind: MessageKind, callback: Callable[[Any], None]) -> None:
        channel: TopicChannel[Any] = TopicChannel.subscriber(connection, topic, kind)
        channel.subscribe(callback)
        self._channels.append(channel)

    def on_update(self, callback: UpdateCallback) -> Callable[[], None]:
        return self._observers.add(callback)

    @property
    def mode(self) -> RobotMode | None:
        if self.robot_state is None:
            return None
        return robot_mode(self.robot_state)

    @property
    def health(self) -> SystemHealth:
        if self.diagnostics is None:
            return SystemHealth()
        return system_health(self.diagnostics)

    def close(self) -> None:
        for channel in self._channels:
            channel.dispose()
        self._channels.clear()
        self._observers.clear()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _on_battery(self, message: BatteryState) -> None:
        self.battery = message
        self._observers.notify("battery", message)

    def _on_pose(self, message: PoseStamped) -> None:
        self.pose = message
        self._observers.notify("pose", message)

    def _on_robot_state(self, message: StringMessage) -> None:
        self.robot_state = message.data
        self._observers.notify("robot_state", message.data)

    def _on_mission_status(self, message: StringMessage) -> None:
        try:
            status = MissionStatus.model_validate_json(message.data)
        except ValidationError as exc:
            _logger.warning("Dropping malformed mission status on %s: %s", self._topics.mission_status, exc)
            return
        self.mission_status = status
        self._observers.notify("mission_status", status)

    def _on_mission_queue(self, message: StringMessage) -> None:
        try:
            queue = MissionQueue.validate_json(message.data)
        except ValidationError as exc:
            _logger.warning("Dropping malformed mission queue on %s: %s", self._topics.mission_queue, exc)
            return
        self.mission_queue = queue
        self._observers.notify("mission_queue", queue)

    def _on_diagnostics(self, message: DiagnosticArray) -> None:
        self.diagnostics = message
        self._observers.notify("diagnostics", message)

    def _on_log(self, message: LogMessage) -> None:
        self.logs.append(message)
        self.log_counts[message.level_name] += 1
        self._observers.notify("log", message)

    def _on_velocity(self, message: Twist) -> None:
        self.velocity = message
        self._observers.notify("velocity", message)
