"""Graph introspection through the rosapi services."""

from __future__ import annotations

from dataclasses import dataclass

from zeusbridge._constants import ROSAPI_NODES_SERVICE, ROSAPI_TOPICS_SERVICE
from zeusbridge.connection import BusConnection


@dataclass(frozen=True)
class TopicInfo:
    name: str
    type: str = "unknown"


async def list_nodes(connection: BusConnection, *, timeout: float | None = None) -> list[str]:
    """Names of the running ROS nodes."""
    values = await connection.call_service(ROSAPI_NODES_SERVICE, timeout=timeout)
    return [str(name) for name in values.get("nodes", [])]


async def list_topics(connection: BusConnection, *, timeout: float | None = None) -> list[TopicInfo]:
    """Advertised topics with their message types.

    rosapi returns parallel ``topics`` and ``types`` arrays; a missing type
    is reported as ``"unknown"``.
    """
    values = await connection.call_service(ROSAPI_TOPICS_SERVICE, timeout=timeout)
    topics = values.get("topics", [])
    types = values.get("types", [])
    result: list[TopicInfo] = []
    for index, name in enumerate(topics):
        topic_type = types[index] if index < len(types) and types[index] else "unknown"
        result.append(TopicInfo(name=str(name), type=str(topic_type)))
    return result
