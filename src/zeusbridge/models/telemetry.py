"""Inbound telemetry models: battery, diagnostics, logs and primitive wrappers."""

from __future__ import annotations

import enum
import math
from typing import Any, ClassVar

from pydantic import Field, field_validator

from zeusbridge.models._base import MessageKind, RosMessage, RosModel
from zeusbridge.models.geometry import Header, Time


class PowerSupplyStatus(enum.IntEnum):
    """``sensor_msgs/BatteryState`` power supply status constants."""

    UNKNOWN = 0
    CHARGING = 1
    DISCHARGING = 2
    NOT_CHARGING = 3
    FULL = 4

    @classmethod
    def _missing_(cls, value: object) -> PowerSupplyStatus:
        return cls.UNKNOWN


class BatteryState(RosMessage):
    """Battery telemetry (``sensor_msgs/BatteryState``).

    ``percentage`` is a 0..1 fraction on the wire; ``NaN`` (unmeasured)
    becomes ``None``.
    """

    kind: ClassVar[MessageKind] = MessageKind.BATTERY_STATE

    voltage: float | None = None
    current: float | None = None
    temperature: float | None = None
    percentage: float | None = None
    power_supply_status: PowerSupplyStatus = PowerSupplyStatus.UNKNOWN

    @field_validator("voltage", "current", "temperature", "percentage", mode="before")
    @classmethod
    def _nan_to_none(cls, value: Any) -> Any:
        if isinstance(value, float) and math.isnan(value):
            return None
        return value

    @property
    def percent(self) -> float | None:
        """State of charge in percent (0..100)."""
        if self.percentage is None:
            return None
        return self.percentage * 100.0

    @property
    def charging(self) -> bool:
        return self.power_supply_status is PowerSupplyStatus.CHARGING


class StringMessage(RosMessage):
    kind: ClassVar[MessageKind] = MessageKind.STRING

    data: str = ""


class Int32Message(RosMessage):
    kind: ClassVar[MessageKind] = MessageKind.INT32

    data: int = 0


class DiagnosticLevel(enum.IntEnum):
    OK = 0
    WARN = 1
    ERROR = 2
    STALE = 3

    @classmethod
    def _missing_(cls, value: object) -> DiagnosticLevel:
        return cls.STALE


class KeyValue(RosModel):
    key: str = ""
    value: str = ""


class DiagnosticStatus(RosModel):
    level: DiagnosticLevel = DiagnosticLevel.OK
    name: str = ""
    message: str = ""
    hardware_id: str = ""
    values: list[KeyValue] = Field(default_factory=list)


class DiagnosticArray(RosMessage):
    kind: ClassVar[MessageKind] = MessageKind.DIAGNOSTIC_ARRAY

    header: Header = Field(default_factory=Header)
    status: list[DiagnosticStatus] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(item.level > DiagnosticLevel.OK for item in self.status)


_LOG_LEVEL_NAMES: dict[int, str] = {
    10: "DEBUG",
    20: "INFO",
    30: "WARN",
    40: "ERROR",
    50: "FATAL",
}


class LogMessage(RosMessage):
    """A ``/rosout`` entry (``rcl_interfaces/msg/Log``)."""

    kind: ClassVar[MessageKind] = MessageKind.LOG

    stamp: Time = Field(default_factory=Time)
    level: int = 20
    name: str = "unknown"
    msg: str = ""
    file: str = ""
    function: str = ""
    line: int = 0

    @property
    def level_name(self) -> str:
        return _LOG_LEVEL_NAMES.get(self.level, "INFO")
