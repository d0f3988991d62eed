"""Mapping from :class:`MessageKind` to its typed model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from zeusbridge.exceptions import MalformedPayloadError
from zeusbridge.models._base import MessageKind, RosMessage
from zeusbridge.models.geometry import PoseStamped, Twist
from zeusbridge.models.telemetry import (
    BatteryState,
    DiagnosticArray,
    Int32Message,
    LogMessage,
    StringMessage,
)

MESSAGE_MODELS: Mapping[MessageKind, type[RosMessage]] = {
    MessageKind.TWIST: Twist,
    MessageKind.POSE_STAMPED: PoseStamped,
    MessageKind.BATTERY_STATE: BatteryState,
    MessageKind.STRING: StringMessage,
    MessageKind.INT32: Int32Message,
    MessageKind.DIAGNOSTIC_ARRAY: DiagnosticArray,
    MessageKind.LOG: LogMessage,
}


def model_for(kind: MessageKind) -> type[RosMessage]:
    return MESSAGE_MODELS[kind]


def decode_message(kind: MessageKind, payload: Any, *, topic: str = "") -> RosMessage:
    """Validate a rosbridge ``msg`` dict into the model for *kind*.

    Raises :class:`MalformedPayloadError` when validation fails.
    """
    try:
        return MESSAGE_MODELS[kind].model_validate(payload)
    except ValidationError as exc:
        raise MalformedPayloadError(
            f"{kind.value} payload on {topic or '<unknown>'} failed validation: {exc.error_count()} error(s)",
            topic=topic,
        ) from exc
