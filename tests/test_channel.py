from __future__ import annotations

import logging

import pytest

from zeusbridge.channel import Direction, TopicChannel
from zeusbridge.exceptions import BridgeTopicError
from zeusbridge.models import MessageKind, StringMessage, Twist


@pytest.mark.asyncio
async def test_publisher_advertises_when_connected(connect, transport, drain) -> None:
    connection = await connect()
    channel = TopicChannel(connection, "/cmd_vel", Direction.PUBLISH, MessageKind.TWIST)
    await drain()

    advertise = transport.socket.ops("advertise")
    assert advertise == [{"op": "advertise", "topic": "/cmd_vel", "type": "geometry_msgs/Twist", "id": advertise[0]["id"]}]

    assert channel.publish(Twist.planar(0.5, -0.2))
    await drain()
    publish = transport.socket.ops("publish")[0]
    assert publish["topic"] == "/cmd_vel"
    assert publish["msg"]["linear"] == {"x": 0.5, "y": 0.0, "z": 0.0}
    assert publish["msg"]["angular"] == {"x": 0.0, "y": 0.0, "z": -0.2}
    await connection.close()


@pytest.mark.asyncio
async def test_publish_while_disconnected_is_dropped(connection, transport, drain) -> None:
    channel = TopicChannel(connection, "/cmd_vel", Direction.PUBLISH, MessageKind.TWIST)

    assert channel.publish(Twist.planar(1.0, 0.0)) is False
    assert transport.sockets == []

    connection.connect()
    await drain()
    assert transport.socket.ops("publish") == []
    await connection.close()


@pytest.mark.asyncio
async def test_publish_after_connection_lost_never_reaches_transport(connect, transport, drain) -> None:
    connection = await connect()
    channel = TopicChannel(connection, "/cmd_vel", Direction.PUBLISH, MessageKind.TWIST)
    transport.socket.hang_up()
    await drain()

    assert channel.publish({"linear": {"x": 1.0}, "angular": {"z": 0.0}}) is False
    await drain()
    assert transport.socket.ops("publish") == []
    await connection.close()


@pytest.mark.asyncio
async def test_subscriber_receives_typed_messages(connect, transport, drain) -> None:
    connection = await connect()
    received: list[StringMessage] = []
    channel = TopicChannel.subscriber(connection, "/robot_state", MessageKind.STRING, throttle_rate=100)
    channel.subscribe(received.append)
    await drain()

    subscribe = transport.socket.ops("subscribe")[0]
    assert subscribe["type"] == "std_msgs/String"
    assert subscribe["throttle_rate"] == 100

    transport.socket.feed({"op": "publish", "topic": "/robot_state", "msg": {"data": "MANUAL"}})
    await drain()
    assert received == [StringMessage(data="MANUAL")]
    await connection.close()


@pytest.mark.asyncio
async def test_subscriber_callback_failure_is_isolated(connect, transport, drain, caplog) -> None:
    connection = await connect()
    received: list[StringMessage] = []
    channel = TopicChannel.subscriber(connection, "/robot_state", MessageKind.STRING)

    def broken(message: StringMessage) -> None:
        raise RuntimeError("subscriber broke")

    channel.subscribe(broken)
    channel.subscribe(received.append)

    with caplog.at_level(logging.WARNING):
        transport.socket.feed({"op": "publish", "topic": "/robot_state", "msg": {"data": "IDLE"}})
        await drain()

    assert len(received) == 1
    assert "subscriber broke" in caplog.text
    await connection.close()


@pytest.mark.asyncio
async def test_dispose_is_idempotent(connect, transport, drain) -> None:
    connection = await connect()
    publisher = TopicChannel.publisher(connection, "/goal_pose", MessageKind.POSE_STAMPED)
    subscriber = TopicChannel.subscriber(connection, "/robot_pose", MessageKind.POSE_STAMPED)

    publisher.dispose()
    publisher.dispose()
    with subscriber:
        pass
    subscriber.dispose()
    await drain()

    assert [op["topic"] for op in transport.socket.ops("unadvertise")] == ["/goal_pose"]
    assert [op["topic"] for op in transport.socket.ops("unsubscribe")] == ["/robot_pose"]
    assert publisher.disposed
    assert publisher.publish(StringMessage(data="x")) is False
    await connection.close()


@pytest.mark.asyncio
async def test_invalid_usage_raises(connection) -> None:
    with pytest.raises(BridgeTopicError):
        TopicChannel(connection, "", Direction.PUBLISH, MessageKind.TWIST)

    subscriber = TopicChannel.subscriber(connection, "/robot_state", MessageKind.STRING)
    with pytest.raises(BridgeTopicError):
        subscriber.publish(StringMessage(data="nope"))

    publisher = TopicChannel.publisher(connection, "/cmd_vel", MessageKind.TWIST)
    with pytest.raises(BridgeTopicError):
        publisher.subscribe(print)
