"""geometry_msgs models: velocity commands and poses."""

from __future__ import annotations

import math
from typing import Any, ClassVar

from pydantic import AliasChoices, Field, model_validator

from zeusbridge.models._base import MessageKind, RosMessage, RosModel


class Vector3(RosModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Point(RosModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Quaternion(RosModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def from_yaw(cls, yaw: float) -> Quaternion:
        """Rotation of *yaw* radians about the z axis."""
        half = yaw / 2.0
        return cls(z=math.sin(half), w=math.cos(half))

    @property
    def yaw(self) -> float:
        """Heading about the z axis, in radians."""
        siny_cosp = 2.0 * (self.w * self.z + self.x * self.y)
        cosy_cosp = 1.0 - 2.0 * (self.y * self.y + self.z * self.z)
        return math.atan2(siny_cosp, cosy_cosp)


class Time(RosModel):
    """Timestamp; accepts ROS 2 (``sec``/``nanosec``) and ROS 1 (``secs``/``nsecs``) keys."""

    sec: int = Field(default=0, validation_alias=AliasChoices("sec", "secs"))
    nanosec: int = Field(default=0, validation_alias=AliasChoices("nanosec", "nsecs"))

    def to_seconds(self) -> float:
        return self.sec + self.nanosec / 1e9


class Header(RosModel):
    frame_id: str = ""
    stamp: Time = Field(default_factory=Time)


class Pose(RosModel):
    position: Point = Field(default_factory=Point)
    orientation: Quaternion = Field(default_factory=Quaternion)


class PoseStamped(RosMessage):
    """A pose in a named frame (``geometry_msgs/PoseStamped``)."""

    kind: ClassVar[MessageKind] = MessageKind.POSE_STAMPED

    header: Header = Field(default_factory=Header)
    pose: Pose = Field(default_factory=Pose)

    @classmethod
    def planar(cls, x: float, y: float, theta: float, *, frame_id: str = "map") -> PoseStamped:
        """Pose on the ground plane at (*x*, *y*) facing *theta* radians."""
        return cls(
            header=Header(frame_id=frame_id),
            pose=Pose(position=Point(x=x, y=y), orientation=Quaternion.from_yaw(theta)),
        )

    @property
    def x(self) -> float:
        return self.pose.position.x

    @property
    def y(self) -> float:
        return self.pose.position.y

    @property
    def theta(self) -> float:
        return self.pose.orientation.yaw


class Twist(RosMessage):
    """Velocity command (``geometry_msgs/Twist``).

    Teleoperation only populates ``linear.x`` and ``angular.z``.
    """

    kind: ClassVar[MessageKind] = MessageKind.TWIST

    linear: Vector3 = Field(default_factory=Vector3)
    angular: Vector3 = Field(default_factory=Vector3)

    @model_validator(mode="before")
    @classmethod
    def _fill_missing_axes(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        for key in ("linear", "angular"):
            if merged.get(key) is None:
                merged.pop(key, None)
        return merged

    @classmethod
    def planar(cls, linear: float, angular: float) -> Twist:
        return cls(linear=Vector3(x=linear), angular=Vector3(z=angular))
