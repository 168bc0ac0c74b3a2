import logging
from typing import Any

import redis.asyncio as redis

logger = logging.getLogger(__name__)

RedisClient = redis.Redis


def get_redis_client(redis_url: str, **kwargs: Any) -> redis.Redis:
    return redis.from_url(redis_url, encoding="utf-8", decode_responses=True, **kwargs)


async def close_redis_client(client: redis.Redis | None) -> None:
    """Close a client created by get_redis_client; a failed close is only logged."""
    if client is None:
        return
    try:
        await client.aclose()
    except (redis.RedisError, OSError) as exc:
        logger.warning("Redis client close failed: %s", exc)
