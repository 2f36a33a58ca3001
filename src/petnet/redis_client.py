"""Redis connection pool and best-effort pub/sub broadcasting.

Redis is optional at runtime: rate limiting and event broadcasts degrade to
no-ops when the pool has not been initialised.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()

CHANNEL_PREFIX = "pubsub:"

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


async def publish_event(event: str, payload: dict[str, Any]) -> bool:
    """Broadcast *payload* on ``pubsub:<event>``.

    Returns True if the message was handed to Redis. Never raises: a missing
    pool or a Redis error only gets logged.
    """
    if _pool is None:
        return False
    try:
        await _pool.publish(CHANNEL_PREFIX + event, json.dumps(payload, default=str))
    except RedisError:
        logger.warning("event_publish_failed", event=event, exc_info=True)
        return False
    return True
