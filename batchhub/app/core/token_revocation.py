"""
Token revocation using Redis.

Logout adds the presented JWT to a blacklist whose entries expire together
with the token itself.
"""

import logging
from redis.exceptions import RedisError
from batchhub.app.core.redis_client import get_redis
from batchhub.app.core.config import settings

logger = logging.getLogger("batchhub.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        client = await get_redis()
        ttl_seconds = settings.access_token_expire_minutes * 60
        await client.setex(f"{TOKEN_BLACKLIST_PREFIX}{token}", ttl_seconds, str(user_id))
        return True
    except RedisError as exc:
        logger.error("Error revoking token for user %s: %s", user_id, exc)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is unreachable the token is treated as valid (fail-open).
    """
    try:
        client = await get_redis()
        return await client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}") > 0
    except RedisError as exc:
        logger.warning("Error checking token revocation: %s", exc)
        return False
