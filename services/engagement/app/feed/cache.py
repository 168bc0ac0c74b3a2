"""Redis cache helpers for the feed domain.

Key schema
----------
feed:{actor_id}:affinity   JSON list of category values   TTL 1 h (configurable)

Redis is best-effort everywhere: a failed read is a cache miss and a failed
write is dropped, both logged. The database stays authoritative.
"""

import json
import logging
from uuid import UUID

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.models.enums import Category

logger = logging.getLogger(__name__)

DEFAULT_AFFINITY_TTL_S: int = 3600  # 1 hour


def _affinity_key(actor_id: UUID) -> str:
    return f"feed:{actor_id}:affinity"


async def get_affinity(actor_id: UUID, redis: Redis | None) -> frozenset[Category] | None:
    """Return the cached category affinity set, or None on a miss."""
    if redis is None:
        return None
    try:
        val = await redis.get(_affinity_key(actor_id))
    except (RedisError, OSError) as exc:
        logger.warning("Affinity cache read failed for %s: %s", actor_id, exc)
        return None
    if val is None:
        return None
    try:
        return frozenset(Category(v) for v in json.loads(val))
    except (ValueError, TypeError) as exc:
        logger.warning("Discarding malformed affinity cache entry for %s: %s", actor_id, exc)
        return None


async def set_affinity(
    actor_id: UUID,
    categories: frozenset[Category],
    redis: Redis | None,
    ttl_s: int = DEFAULT_AFFINITY_TTL_S,
) -> None:
    if redis is None:
        return
    payload = json.dumps(sorted(c.value for c in categories))
    try:
        await redis.setex(_affinity_key(actor_id), ttl_s, payload)
    except (RedisError, OSError) as exc:
        logger.warning("Affinity cache write failed for %s: %s", actor_id, exc)


async def invalidate_affinity(actor_id: UUID, redis: Redis | None) -> None:
    """Drop the cached set; called whenever the actor's likes change."""
    if redis is None:
        return
    try:
        await redis.delete(_affinity_key(actor_id))
    except (RedisError, OSError) as exc:
        logger.warning("Affinity cache invalidation failed for %s: %s", actor_id, exc)
