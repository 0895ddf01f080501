"""Redis Pub/Sub broadcaster.

The websocket transport (outside this service) subscribes to the channels
and owns room membership; this side only PUBLISHes JSON messages.
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as aioredis

from src.am_common.redis_client import get_redis

CHANNEL_PREFIX = "am:"


class RedisEventBroadcaster:
    def __init__(
        self, redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis
    ) -> None:
        self._redis_factory = redis_factory

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        redis = await self._redis_factory()
        await redis.publish(f"{CHANNEL_PREFIX}{topic}", json.dumps(payload, default=str))


class RecordingBroadcaster:
    """In-memory broadcaster: keeps (topic, payload) pairs in publish order.

    Used by tests and by single-process deployments without Redis.
    """

    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        self.published.append((topic, payload))

    def events_named(self, name: str) -> list[dict[str, Any]]:
        return [payload for _, payload in self.published if payload.get("event") == name]

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.published]
