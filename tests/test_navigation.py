from __future__ import annotations

import json
import math

import pytest

from zeusbridge.exceptions import InvalidQrCodeError
from zeusbridge.navigation import NavigationCommander


def _published(socket, topic: str) -> list[dict]:
    return [op["msg"] for op in socket.ops("publish") if op["topic"] == topic]


@pytest.mark.asyncio
async def test_send_goal_publishes_pose_with_quaternion(connect, transport, drain) -> None:
    connection = await connect()
    navigation = NavigationCommander(connection)

    assert navigation.send_goal(2.0, 3.0, math.pi)
    await drain()

    (goal,) = _published(transport.socket, "/goal_pose")
    assert goal["header"]["frame_id"] == "map"
    assert goal["pose"]["position"]["x"] == 2.0
    assert goal["pose"]["orientation"]["z"] == pytest.approx(1.0)
    assert goal["pose"]["orientation"]["w"] == pytest.approx(0.0, abs=1e-9)
    navigation.close()
    await connection.close()


@pytest.mark.asyncio
async def test_navigate_to_qr_validates_against_graph(connect, transport, drain) -> None:
    connection = await connect()
    navigation = NavigationCommander(connection)

    with pytest.raises(InvalidQrCodeError):
        navigation.navigate_to_qr("   ")

    # Any code is accepted until the graph is known.
    assert navigation.navigate_to_qr("QR_900")

    transport.socket.feed(
        {"op": "publish", "topic": "/graph_nodes", "msg": {"data": json.dumps(["QR_001", "QR_002"])}}
    )
    await drain()
    assert navigation.known_codes == ("QR_001", "QR_002")

    with pytest.raises(InvalidQrCodeError):
        navigation.navigate_to_qr("QR_900")
    assert navigation.navigate_to_qr("QR_002")
    await drain()

    assert _published(transport.socket, "/navigate_to_qr") == [{"data": "QR_900"}, {"data": "QR_002"}]
    navigation.close()
    await connection.close()


@pytest.mark.asyncio
async def test_malformed_graph_keeps_previous_codes(connect, transport, drain) -> None:
    connection = await connect()
    navigation = NavigationCommander(connection)
    transport.socket.feed({"op": "publish", "topic": "/graph_nodes", "msg": {"data": '["QR_001"]'}})
    transport.socket.feed({"op": "publish", "topic": "/graph_nodes", "msg": {"data": "{broken"}})
    await drain()

    assert navigation.known_codes == ("QR_001",)
    navigation.close()
    await connection.close()


@pytest.mark.asyncio
async def test_return_to_charge_sends_qr_then_charge(connect, transport, drain) -> None:
    connection = await connect()
    navigation = NavigationCommander(connection)

    assert await navigation.return_to_charge("CHARGE_QR_001", delay=0)
    await drain()

    ops = [op for op in transport.socket.ops("publish")]
    assert [(op["topic"], op["msg"]["data"]) for op in ops] == [
        ("/navigate_to_qr", "CHARGE_QR_001"),
        ("/charge_battery", 1),
    ]
    navigation.close()
    await connection.close()


@pytest.mark.asyncio
async def test_commands_dropped_while_disconnected(connection) -> None:
    navigation = NavigationCommander(connection)
    assert navigation.send_goal(0.0, 0.0, 0.0) is False
    assert navigation.navigate_to_qr("QR_001") is False
    assert await navigation.return_to_charge(delay=0) is False
