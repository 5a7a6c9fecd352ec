"""Optional Redis connection used for pub/sub events and rate limiting.

Redis is connected when event publishing or rate limiting is enabled. Every
consumer degrades when its accessor returns None.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis

from questline.config import get_settings

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )
    logger.info("Redis client configured (max_connections=%d)", max_connections)


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis_optional() -> redis.Redis | None:
    """The shared client, or None when Redis was never initialized."""
    return _client


def get_event_client() -> redis.Redis | None:
    """The client to publish events on, or None when publishing is off."""
    if not get_settings().publish_events:
        return None
    return _client


async def publish_event(client: Any, channel: str, payload: dict[str, Any]) -> bool:
    """Publish a JSON payload on a pub/sub channel.

    Returns True if published. Failures are logged and reported as False,
    never raised.
    """
    if client is None:
        return False
    try:
        await client.publish(channel, json.dumps(payload, default=str))
    except Exception:
        logger.warning("Failed to publish %s event", channel, exc_info=True)
        return False
    return True
