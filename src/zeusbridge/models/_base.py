"""Base model and message-kind tag for rosbridge payloads.

Every typed ROS message inherits from :class:`RosMessage`, which provides:

* frozen, extra-tolerant pydantic models (rosbridge adds fields across ROS
  distributions, unknown keys are ignored);
* a ``kind`` class tag naming the ROS message type, so consumers can
  dispatch exhaustively on :class:`MessageKind`;
* :meth:`RosMessage.to_payload` for the wire dict.

JSON documents carried inside ``std_msgs/String`` (VDA5050, missions) use
:class:`CamelModel`, which maps camelCase keys to snake_case fields.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MessageKind(StrEnum):
    """Message kinds understood by the bridge; the value is the ROS type."""

    TWIST = "geometry_msgs/Twist"
    POSE_STAMPED = "geometry_msgs/PoseStamped"
    BATTERY_STATE = "sensor_msgs/BatteryState"
    STRING = "std_msgs/String"
    INT32 = "std_msgs/Int32"
    DIAGNOSTIC_ARRAY = "diagnostic_msgs/DiagnosticArray"
    LOG = "rcl_interfaces/msg/Log"


class RosModel(BaseModel):
    """Base for nested ROS message fields."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )


class RosMessage(RosModel):
    """Base for top-level ROS messages published on a topic."""

    kind: ClassVar[MessageKind]

    def to_payload(self) -> dict[str, Any]:
        """Return the rosbridge ``msg`` dict for this message."""
        return self.model_dump(mode="json")


class CamelModel(BaseModel):
    """Base for JSON documents with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, dropping unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
