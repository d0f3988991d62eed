"""VDA5050 fleet-protocol documents.

The robot relays VDA5050 JSON over rosbridge as ``std_msgs/String``
payloads.  Only the fields the operator console works with are modelled;
unknown keys are ignored.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from zeusbridge.models._base import CamelModel

VDA5050_VERSION = "2.0"


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BlockingType(StrEnum):
    NONE = "NONE"
    SOFT = "SOFT"
    HARD = "HARD"


class InstantActionType(StrEnum):
    """Instant actions offered to the operator.

    ``emergencyStop`` is vehicle-specific; the others are VDA5050 predefined
    actions.
    """

    EMERGENCY_STOP = "emergencyStop"
    PAUSE = "startPause"
    RESUME = "stopPause"
    CANCEL_ORDER = "cancelOrder"
    STATE_REQUEST = "stateRequest"


class ActionParameter(CamelModel):
    key: str
    value: Any = None


class Action(CamelModel):
    action_type: str
    action_id: str = ""
    blocking_type: BlockingType = BlockingType.HARD
    action_description: str | None = None
    action_parameters: list[ActionParameter] = Field(default_factory=list)


class Node(CamelModel):
    node_id: str
    sequence_id: int = 0
    released: bool = False
    actions: list[Action] = Field(default_factory=list)

    @field_validator("actions", mode="before")
    @classmethod
    def _accept_action_names(cls, value: Any) -> Any:
        # Simplified orders list bare action type names.
        if not isinstance(value, list):
            return value
        return [{"actionType": item} if isinstance(item, str) else item for item in value]


class Edge(CamelModel):
    edge_id: str
    sequence_id: int = 0
    start_node_id: str = ""
    end_node_id: str = ""
    released: bool = False
    actions: list[Action] = Field(default_factory=list)


class Order(CamelModel):
    """A VDA5050 order as relayed on ``/vda5050/order``."""

    header_id: int = 0
    timestamp: str = ""
    version: str = VDA5050_VERSION
    manufacturer: str = ""
    serial_number: str = ""
    order_id: str
    order_update_id: int = 0
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    @property
    def released_nodes(self) -> list[Node]:
        return [node for node in self.nodes if node.released]


class VdaStatus(CamelModel):
    """Subset of the VDA5050 state/connection document on ``/vda5050/status``."""

    connection_state: str = "ONLINE"
    order_id: str | None = None
    order_update_id: int | None = None
    last_node_id: str | None = None
    driving: bool | None = None
    operating_mode: str | None = None


class InstantActions(CamelModel):
    header_id: int = 0
    timestamp: str = Field(default_factory=_utc_timestamp)
    version: str = VDA5050_VERSION
    manufacturer: str = ""
    serial_number: str = ""
    actions: list[Action] = Field(default_factory=list)
