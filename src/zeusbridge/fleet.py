"""VDA5050 order/status monitoring and instant actions."""

from __future__ import annotations

import itertools
import json
import logging
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from zeusbridge._constants import VDA_INSTANT_ACTIONS_TOPIC, VDA_ORDER_TOPIC, VDA_STATUS_TOPIC
from zeusbridge._observers import ObserverList
from zeusbridge.channel import Direction, TopicChannel
from zeusbridge.connection import BusConnection
from zeusbridge.models import (
    Action,
    ActionParameter,
    BlockingType,
    InstantActions,
    InstantActionType,
    MessageKind,
    Order,
    StringMessage,
    VdaStatus,
)

_logger = logging.getLogger(__name__)


class Vda5050Monitor:
    """Tracks the robot's VDA5050 order and status and sends instant actions.

    The VDA5050 documents travel as JSON strings inside ``std_msgs/String``
    on ``/vda5050/order``, ``/vda5050/status`` and
    ``/vda5050/instant_actions``.
    """

    def __init__(self, connection: BusConnection, *, manufacturer: str = "", serial_number: str = "") -> None:
        self._manufacturer = manufacturer
        self._serial_number = serial_number
        self._header_ids = itertools.count(1)

        self.order: Order | None = None
        self.status: VdaStatus | None = None
        self._order_observers: ObserverList[[Order]] = ObserverList("VDA5050 order observer")
        self._status_observers: ObserverList[[VdaStatus]] = ObserverList("VDA5050 status observer")

        self._order_channel: TopicChannel[StringMessage] = TopicChannel(
            connection, VDA_ORDER_TOPIC, Direction.SUBSCRIBE, MessageKind.STRING
        )
        self._status_channel: TopicChannel[StringMessage] = TopicChannel(
            connection, VDA_STATUS_TOPIC, Direction.SUBSCRIBE, MessageKind.STRING
        )
        self._actions_channel: TopicChannel[StringMessage] = TopicChannel(
            connection, VDA_INSTANT_ACTIONS_TOPIC, Direction.PUBLISH, MessageKind.STRING
        )
        self._order_channel.subscribe(self._on_order)
        self._status_channel.subscribe(self._on_status)

    @property
    def connection_state(self) -> str | None:
        return self.status.connection_state if self.status is not None else None

    def on_order(self, callback: Callable[[Order], None]) -> Callable[[], None]:
        return self._order_observers.add(callback)

    def on_status(self, callback: Callable[[VdaStatus], None]) -> Callable[[], None]:
        return self._status_observers.add(callback)

    def send_instant_action(
        self,
        action_type: InstantActionType | str,
        *,
        parameters: Mapping[str, Any] | None = None,
        blocking_type: BlockingType = BlockingType.HARD,
        description: str | None = None,
    ) -> InstantActions | None:
        """Publish a single instant action.

        Returns the message that was sent, or ``None`` when the bus is not
        connected and nothing was published.
        """
        action = Action(
            action_type=str(action_type),
            action_id=str(uuid.uuid4()),
            blocking_type=blocking_type,
            action_description=description,
            action_parameters=[ActionParameter(key=key, value=value) for key, value in (parameters or {}).items()],
        )
        message = InstantActions(
            header_id=next(self._header_ids),
            manufacturer=self._manufacturer,
            serial_number=self._serial_number,
            actions=[action],
        )
        if not self._actions_channel.publish(StringMessage(data=json.dumps(message.to_json_dict()))):
            _logger.debug("Instant action %s dropped, bus not connected", action.action_type)
            return None
        _logger.info("Sent instant action %s (header %d)", action.action_type, message.header_id)
        return message

    def pause(self) -> InstantActions | None:
        return self.send_instant_action(InstantActionType.PAUSE)

    def resume(self) -> InstantActions | None:
        return self.send_instant_action(InstantActionType.RESUME)

    def cancel_order(self) -> InstantActions | None:
        return self.send_instant_action(InstantActionType.CANCEL_ORDER)

    def emergency_stop(self) -> InstantActions | None:
        return self.send_instant_action(InstantActionType.EMERGENCY_STOP)

    def close(self) -> None:
        for channel in (self._order_channel, self._status_channel, self._actions_channel):
            channel.dispose()
        self._order_observers.clear()
        self._status_observers.clear()

    def _on_order(self, message: StringMessage) -> None:
        try:
            order = Order.model_validate_json(message.data)
        except ValidationError as exc:
            _logger.warning("Dropping malformed VDA5050 order: %s", exc)
            return
        self.order = order
        self._order_observers.notify(order)

    def _on_status(self, message: StringMessage) -> None:
        try:
            status = VdaStatus.model_validate_json(message.data)
        except ValidationError as exc:
            _logger.warning("Dropping malformed VDA5050 status: %s", exc)
            return
        self.status = status
        self._status_observers.notify(status)
