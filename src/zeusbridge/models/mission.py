"""Mission status and queue documents (JSON inside ``std_msgs/String``)."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field, TypeAdapter

from zeusbridge.models._base import CamelModel


class MissionState(StrEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> MissionState:
        if isinstance(value, str):
            upper = value.strip().upper()
            for member in cls:
                if member.value == upper:
                    return member
        return cls.UNKNOWN


class MissionStatus(CamelModel):
    """Progress of the currently executing mission (``/mission_status``)."""

    id: str = ""
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    state: MissionState = MissionState.UNKNOWN


class Mission(CamelModel):
    """One entry of the mission queue (``/mission_queue``)."""

    id: str
    name: str = ""
    type: str = ""
    priority: int = 0
    status: MissionState = MissionState.PENDING
    progress: float = Field(default=0.0, ge=0.0, le=100.0)


MissionQueue = TypeAdapter(list[Mission])
