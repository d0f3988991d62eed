from __future__ import annotations

import json

import pytest

from zeusbridge.fleet import Vda5050Monitor
from zeusbridge.models import InstantActionType, Order


@pytest.mark.asyncio
async def test_order_and_status_are_tracked(connect, transport, drain) -> None:
    connection = await connect()
    monitor = Vda5050Monitor(connection)
    orders: list[Order] = []
    monitor.on_order(orders.append)

    order = {"headerId": 1, "orderId": "order-123", "nodes": [{"nodeId": "node-1", "released": True}]}
    transport.socket.feed({"op": "publish", "topic": "/vda5050/order", "msg": {"data": json.dumps(order)}})
    transport.socket.feed(
        {"op": "publish", "topic": "/vda5050/status", "msg": {"data": '{"connectionState": "ONLINE"}'}}
    )
    await drain()

    assert monitor.order is not None
    assert monitor.order.order_id == "order-123"
    assert orders == [monitor.order]
    assert monitor.connection_state == "ONLINE"
    monitor.close()
    await connection.close()


@pytest.mark.asyncio
async def test_malformed_order_is_dropped(connect, transport, drain) -> None:
    connection = await connect()
    monitor = Vda5050Monitor(connection)

    transport.socket.feed({"op": "publish", "topic": "/vda5050/order", "msg": {"data": "{oops"}})
    transport.socket.feed({"op": "publish", "topic": "/vda5050/order", "msg": {"data": '{"headerId": 3}'}})
    await drain()

    assert monitor.order is None
    monitor.close()
    await connection.close()


@pytest.mark.asyncio
async def test_send_instant_action(connect, transport, drain) -> None:
    connection = await connect()
    monitor = Vda5050Monitor(connection, manufacturer="zeus", serial_number="AMR-7")

    first = monitor.pause()
    second = monitor.send_instant_action(
        InstantActionType.CANCEL_ORDER, parameters={"reason": "operator"}, description="abort"
    )
    await drain()

    assert first is not None and second is not None
    assert (first.header_id, second.header_id) == (1, 2)

    published = [json.loads(op["msg"]["data"]) for op in transport.socket.ops("publish")]
    assert [doc["actions"][0]["actionType"] for doc in published] == ["startPause", "cancelOrder"]
    assert published[1]["serialNumber"] == "AMR-7"
    assert published[1]["actions"][0]["actionParameters"] == [{"key": "reason", "value": "operator"}]
    assert published[1]["actions"][0]["actionDescription"] == "abort"
    assert "actionDescription" not in published[0]["actions"][0]
    monitor.close()
    await connection.close()


@pytest.mark.asyncio
async def test_instant_action_dropped_while_disconnected(connection) -> None:
    monitor = Vda5050Monitor(connection)
    assert monitor.emergency_stop() is None
