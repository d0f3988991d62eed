"""Navigation commands: goal poses, QR-code targets and return-to-charge."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from zeusbridge._constants import (
    CHARGE_BATTERY_TOPIC,
    GOAL_POSE_TOPIC,
    GRAPH_NODES_TOPIC,
    NAVIGATE_TO_QR_TOPIC,
)
from zeusbridge.channel import Direction, TopicChannel
from zeusbridge.connection import BusConnection
from zeusbridge.exceptions import InvalidQrCodeError
from zeusbridge.models import Int32Message, MessageKind, PoseStamped, StringMessage

_logger = logging.getLogger(__name__)

_QR_LIST = TypeAdapter(list[str])

DEFAULT_CHARGE_QR = "CHARGE_QR_001"


class NavigationCommander:
    """Publishes navigation targets for the robot's planner.

    The list of known QR codes comes from ``/graph_nodes`` (a JSON array
    inside ``std_msgs/String``).  Until it has been received any non-empty
    code is accepted.
    """

    def __init__(self, connection: BusConnection) -> None:
        self._goal: TopicChannel[PoseStamped] = TopicChannel(
            connection, GOAL_POSE_TOPIC, Direction.PUBLISH, MessageKind.POSE_STAMPED
        )
        self._qr: TopicChannel[StringMessage] = TopicChannel(
            connection, NAVIGATE_TO_QR_TOPIC, Direction.PUBLISH, MessageKind.STRING
        )
        self._charge: TopicChannel[Int32Message] = TopicChannel(
            connection, CHARGE_BATTERY_TOPIC, Direction.PUBLISH, MessageKind.INT32
        )
        self._graph: TopicChannel[StringMessage] = TopicChannel(
            connection, GRAPH_NODES_TOPIC, Direction.SUBSCRIBE, MessageKind.STRING
        )
        self._graph.subscribe(self._on_graph_nodes)
        self._known_codes: tuple[str, ...] = ()

    @property
    def known_codes(self) -> tuple[str, ...]:
        return self._known_codes

    def send_goal(self, x: float, y: float, theta: float, frame_id: str = "map") -> bool:
        """Publish a goal pose; *theta* is the heading in radians."""
        goal = PoseStamped.planar(x, y, theta, frame_id=frame_id)
        _logger.info("Sending goal x=%.2f y=%.2f theta=%.2f frame=%s", x, y, theta, frame_id)
        return self._goal.publish(goal)

    def navigate_to_qr(self, code: str) -> bool:
        """Send the robot to the graph node labelled *code*.

        Raises
        ------
        InvalidQrCodeError
            If *code* is empty, or not in the graph once the graph is known.
        """
        code = code.strip()
        if not code:
            raise InvalidQrCodeError("QR code must not be empty")
        if self._known_codes and code not in self._known_codes:
            raise InvalidQrCodeError(f"QR code {code} not found in graph")
        _logger.info("Navigating to QR %s", code)
        return self._qr.publish(StringMessage(data=code))

    async def return_to_charge(self, charge_qr: str = DEFAULT_CHARGE_QR, delay: float = 2.0) -> bool:
        """Drive to the charging station, then request charging after *delay* seconds.

        Returns ``True`` only if both commands were published.
        """
        if not charge_qr.strip():
            raise InvalidQrCodeError("Charge QR code must not be empty")
        sent = self._qr.publish(StringMessage(data=charge_qr.strip()))
        await asyncio.sleep(delay)
        charged = self._charge.publish(Int32Message(data=1))
        return sent and charged

    def close(self) -> None:
        for channel in (self._goal, self._qr, self._charge, self._graph):
            channel.dispose()

    def _on_graph_nodes(self, message: StringMessage) -> None:
        try:
            codes: list[Any] = _QR_LIST.validate_json(message.data)
        except ValidationError as exc:
            _logger.warning("Dropping malformed graph node list: %s", exc)
            return
        self._known_codes = tuple(codes)
        _logger.debug("Graph lists %d QR codes", len(self._known_codes))
