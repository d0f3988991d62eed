"""rosbridge v2 wire protocol: outbound op builders and inbound frame parsing."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from zeusbridge.exceptions import MalformedPayloadError


@dataclass(frozen=True)
class InboundFrame:
    """A decoded rosbridge frame.

    ``topic`` is set for ``publish`` ops, ``call_id``/``service`` for
    ``service_response`` ops.  ``body`` keeps the full decoded object.
    """

    op: str
    body: dict[str, Any]
    topic: str | None = None
    msg: dict[str, Any] = field(default_factory=dict)
    call_id: str | None = None
    service: str | None = None


def encode(op: dict[str, Any]) -> str:
    """Serialize an op for the wire."""
    return json.dumps(op, separators=(",", ":"))


def advertise_op(topic: str, message_type: str, *, op_id: str | None = None) -> dict[str, Any]:
    op: dict[str, Any] = {"op": "advertise", "topic": topic, "type": message_type}
    if op_id:
        op["id"] = op_id
    return op


def unadvertise_op(topic: str, *, op_id: str | None = None) -> dict[str, Any]:
    op: dict[str, Any] = {"op": "unadvertise", "topic": topic}
    if op_id:
        op["id"] = op_id
    return op


def publish_op(topic: str, msg: dict[str, Any]) -> dict[str, Any]:
    return {"op": "publish", "topic": topic, "msg": msg}


def subscribe_op(
    topic: str,
    message_type: str,
    *,
    op_id: str | None = None,
    throttle_rate: int = 0,
    queue_length: int = 0,
) -> dict[str, Any]:
    op: dict[str, Any] = {
        "op": "subscribe",
        "topic": topic,
        "type": message_type,
        "throttle_rate": throttle_rate,
        "queue_length": queue_length,
    }
    if op_id:
        op["id"] = op_id
    return op


def unsubscribe_op(topic: str, *, op_id: str | None = None) -> dict[str, Any]:
    op: dict[str, Any] = {"op": "unsubscribe", "topic": topic}
    if op_id:
        op["id"] = op_id
    return op


def call_service_op(service: str, args: dict[str, Any], *, call_id: str) -> dict[str, Any]:
    return {"op": "call_service", "service": service, "args": args, "id": call_id}


def decode_frame(text: str) -> InboundFrame:
    """Parse one inbound text frame.

    Raises :class:`MalformedPayloadError` when the frame is not a JSON
    object with a string ``op`` field, or when a ``publish`` frame lacks a
    topic or an object ``msg``.
    """
    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError(f"Frame is not JSON: {text[:64]!r}") from exc

    if not isinstance(body, dict):
        raise MalformedPayloadError("Frame is not a JSON object")

    op = body.get("op")
    if not isinstance(op, str) or not op:
        raise MalformedPayloadError("Frame has no 'op' field")

    if op == "publish":
        topic = body.get("topic")
        msg = body.get("msg")
        if not isinstance(topic, str) or not topic:
            raise MalformedPayloadError("publish frame has no topic")
        if not isinstance(msg, dict):
            raise MalformedPayloadError("publish frame 'msg' is not an object", topic=topic)
        return InboundFrame(op=op, body=body, topic=topic, msg=msg)

    if op == "service_response":
        call_id = body.get("id")
        service = body.get("service")
        return InboundFrame(
            op=op,
            body=body,
            call_id=call_id if isinstance(call_id, str) else None,
            service=service if isinstance(service, str) else None,
        )

    return InboundFrame(op=op, body=body)
