from __future__ import annotations

from typing import Any

import pytest

from zeusbridge.models import DiagnosticArray
from zeusbridge.telemetry import RobotMode, SystemHealth, TelemetryFeed, robot_mode, system_health


@pytest.mark.parametrize(
    ("text", "mode"),
    [("MANUAL_CONTROL", RobotMode.MANUAL), ("error: e-stop", RobotMode.ERROR), ("MOVING", RobotMode.AUTO)],
)
def test_robot_mode(text: str, mode: RobotMode) -> None:
    assert robot_mode(text) is mode


def test_system_health_from_diagnostics() -> None:
    diagnostics = DiagnosticArray.model_validate(
        {
            "status": [
                {"name": "motor_driver", "level": 0},
                {"name": "lidar_front", "level": 2, "message": "no scans"},
                {"name": "cpu_load", "level": 0, "message": "63% used"},
            ]
        }
    )
    assert system_health(diagnostics) == SystemHealth(motors="OK", lidar="ERROR", network="OK", cpu=63)


@pytest.mark.asyncio
async def test_feed_keeps_latest_values(connect, transport, drain) -> None:
    connection = await connect()
    feed = TelemetryFeed(connection, log_history=2)
    updates: list[tuple[str, Any]] = []
    feed.on_update(lambda name, value: updates.append((name, value)))
    await drain()

    subscribed = {op["topic"] for op in transport.socket.ops("subscribe")}
    assert subscribed == {
        "/battery_data",
        "/robot_pose",
        "/robot_state",
        "/mission_status",
        "/mission_queue",
        "/diagnostics",
        "/rosout",
        "/cmd_vel",
    }

    socket = transport.socket
    socket.feed({"op": "publish", "topic": "/battery_data", "msg": {"percentage": 0.42}})
    socket.feed({"op": "publish", "topic": "/robot_state", "msg": {"data": "MANUAL"}})
    socket.feed({"op": "publish", "topic": "/mission_status", "msg": {"data": '{"id": "m-1", "progress": 10}'}})
    socket.feed({"op": "publish", "topic": "/mission_status", "msg": {"data": "not json"}})
    socket.feed({"op": "publish", "topic": "/mission_queue", "msg": {"data": '[{"id": "m-1"}, {"id": "m-2"}]'}})
    for index in range(3):
        socket.feed({"op": "publish", "topic": "/rosout", "msg": {"level": 30, "name": "planner", "msg": f"warn {index}"}})
    await drain()

    assert feed.battery is not None and feed.battery.percent == pytest.approx(42.0)
    assert feed.mode is RobotMode.MANUAL
    assert feed.mission_status is not None and feed.mission_status.id == "m-1"
    assert [mission.id for mission in feed.mission_queue] == ["m-1", "m-2"]
    assert [log.msg for log in feed.logs] == ["warn 1", "warn 2"]
    assert feed.health == SystemHealth()
    assert [name for name, _ in updates][:3] == ["battery", "robot_state", "mission_status"]
    assert [name for name, _ in updates].count("mission_status") == 1

    feed.close()
    await drain()
    assert len(transport.socket.ops("unsubscribe")) == 8
    await connection.close()


@pytest.mark.asyncio
async def test_feed_tracks_commanded_velocity(connect, transport, drain) -> None:
    connection = await connect()
    feed = TelemetryFeed(connection)
    updates: list[str] = []
    feed.on_update(lambda name, value: updates.append(name))
    await drain()

    transport.socket.feed(
        {"op": "publish", "topic": "/cmd_vel", "msg": {"linear": {"x": 0.5}, "angular": {"z": -0.25}}}
    )
    await drain()

    assert feed.velocity is not None
    assert feed.velocity.linear.x == pytest.approx(0.5)
    assert feed.velocity.angular.z == pytest.approx(-0.25)
    assert updates == ["velocity"]
    feed.close()
    await connection.close()


@pytest.mark.asyncio
async def test_log_counts_survive_history_cap(connect, transport, drain) -> None:
    connection = await connect()
    feed = TelemetryFeed(connection, log_history=1)
    await drain()

    for level in (20, 30, 30, 40, 50, 50, 50):
        transport.socket.feed({"op": "publish", "topic": "/rosout", "msg": {"level": level, "msg": "x"}})
    await drain()

    assert len(feed.logs) == 1
    assert feed.log_counts["WARN"] == 2
    assert feed.log_counts["ERROR"] == 1
    assert feed.log_counts["FATAL"] == 3
    assert feed.log_counts["INFO"] == 1
    feed.close()
    await connection.close()
