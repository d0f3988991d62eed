"""Data models for rosbridge payloads."""

from zeusbridge.models._base import CamelModel, MessageKind, RosMessage, RosModel
from zeusbridge.models.geometry import Header, Point, Pose, PoseStamped, Quaternion, Time, Twist, Vector3
from zeusbridge.models.mission import Mission, MissionQueue, MissionState, MissionStatus
from zeusbridge.models.registry import MESSAGE_MODELS, decode_message, model_for
from zeusbridge.models.telemetry import (
    BatteryState,
    DiagnosticArray,
    DiagnosticLevel,
    DiagnosticStatus,
    Int32Message,
    KeyValue,
    LogMessage,
    PowerSupplyStatus,
    StringMessage,
)
from zeusbridge.models.vda5050 import (
    Action,
    ActionParameter,
    BlockingType,
    Edge,
    InstantActions,
    InstantActionType,
    Node,
    Order,
    VdaStatus,
)

__all__ = [
    "MESSAGE_MODELS",
    "Action",
    "ActionParameter",
    "BatteryState",
    "BlockingType",
    "CamelModel",
    "DiagnosticArray",
    "DiagnosticLevel",
    "DiagnosticStatus",
    "Edge",
    "Header",
    "InstantActionType",
    "InstantActions",
    "Int32Message",
    "KeyValue",
    "LogMessage",
    "MessageKind",
    "Mission",
    "MissionQueue",
    "MissionState",
    "MissionStatus",
    "Node",
    "Order",
    "Point",
    "Pose",
    "PoseStamped",
    "PowerSupplyStatus",
    "Quaternion",
    "RosMessage",
    "RosModel",
    "StringMessage",
    "Time",
    "Twist",
    "VdaStatus",
    "Vector3",
    "decode_message",
    "model_for",
]
