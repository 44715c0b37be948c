"""
Redis client initialization and connection management.

Redis holds the JWT revocation list.
"""

import logging
import redis.asyncio as redis
from batchhub.app.core.config import settings

logger = logging.getLogger("batchhub.redis")

# Create async Redis client (connects lazily on first command)
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get the Redis client instance.

    Resolved at call time so tests can swap the module-level client.
    """
    return redis_client


async def ping_redis() -> bool:
    """Return True if Redis answers a PING."""
    try:
        return await (await get_redis()).ping()
    except redis.RedisError as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False
