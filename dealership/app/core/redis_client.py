"""
Redis client initialization.

Redis backs bearer token revocation.
"""

import logging

import redis.asyncio as redis
from dealership.app.core.config import settings

logger = logging.getLogger("dealership.redis")


redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """Redis client, usable as a FastAPI dependency."""
    return redis_client


async def ping_redis() -> bool:
    """
    Test the Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except Exception as e:
        logger.warning("Redis ping failed: %s", e)
        return False
