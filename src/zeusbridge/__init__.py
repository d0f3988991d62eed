"""zeusbridge - Async rosbridge client for robot monitoring and teleoperation."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("zeusbridge")
except PackageNotFoundError:
    __version__ = "0+local"
from zeusbridge.channel import Direction, TopicChannel
from zeusbridge.config import BridgeConfig
from zeusbridge.connection import BridgeHandle, BusConnection, ConnectionState
from zeusbridge.exceptions import (
    BridgeConfigError,
    BridgeError,
    BridgeNotConnectedError,
    BridgeServiceError,
    BridgeTopicError,
    BridgeTransportError,
    InvalidQrCodeError,
    MalformedPayloadError,
    ReconnectExhaustedError,
)
from zeusbridge.fleet import Vda5050Monitor
from zeusbridge.models import (
    BatteryState,
    DiagnosticArray,
    InstantActions,
    InstantActionType,
    LogMessage,
    MessageKind,
    Mission,
    MissionStatus,
    Order,
    PoseStamped,
    Twist,
    VdaStatus,
)
from zeusbridge.navigation import NavigationCommander
from zeusbridge.reconnect import ReconnectPolicy
from zeusbridge.rosapi import TopicInfo, list_nodes, list_topics
from zeusbridge.settings import SettingsStore, resolve_url
from zeusbridge.telemetry import RobotMode, SystemHealth, TelemetryFeed, TelemetryTopics
from zeusbridge.teleop import (
    KeyBindings,
    PointerVector,
    VelocityCommand,
    VelocityController,
    clamp_to_disk,
    command_from_keys,
    command_from_pointer,
)

__all__ = [
    "__version__",
    "BatteryState",
    "BridgeConfig",
    "BridgeConfigError",
    "BridgeError",
    "BridgeHandle",
    "BridgeNotConnectedError",
    "BridgeServiceError",
    "BridgeTopicError",
    "BridgeTransportError",
    "BusConnection",
    "ConnectionState",
    "DiagnosticArray",
    "Direction",
    "InstantActionType",
    "InstantActions",
    "InvalidQrCodeError",
    "KeyBindings",
    "LogMessage",
    "MalformedPayloadError",
    "MessageKind",
    "Mission",
    "MissionStatus",
    "NavigationCommander",
    "Order",
    "PointerVector",
    "PoseStamped",
    "ReconnectExhaustedError",
    "ReconnectPolicy",
    "RobotMode",
    "SettingsStore",
    "SystemHealth",
    "TelemetryFeed",
    "TelemetryTopics",
    "TopicChannel",
    "TopicInfo",
    "Twist",
    "Vda5050Monitor",
    "VdaStatus",
    "VelocityCommand",
    "VelocityController",
    "clamp_to_disk",
    "command_from_keys",
    "command_from_pointer",
    "list_nodes",
    "list_topics",
    "resolve_url",
]
