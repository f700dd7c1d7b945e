"""
Token revocation using Redis.

A logged-out token is blacklisted until it would have expired anyway. The
identity provider may also flag every token of a user as revoked (for a
deactivated employee); that flag is honoured here.
"""

import logging

from dealership.app.core import redis_client as redis_module
from dealership.app.core.config import settings

logger = logging.getLogger("dealership.auth")

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Blacklist a token for the rest of its lifetime.

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        ttl_seconds = settings.access_token_expire_minutes * 60
        await redis_module.redis_client.setex(
            f"{TOKEN_BLACKLIST_PREFIX}{token}",
            ttl_seconds,
            str(user_id)
        )
        return True
    except Exception as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    try:
        exists = await redis_module.redis_client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except Exception as e:
        # Fail open: Redis outage must not lock out the showroom
        logger.error("Error checking token revocation: %s", e)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    """True if every token of ``user_id`` has been revoked."""
    try:
        exists = await redis_module.redis_client.exists(f"{USER_TOKENS_PREFIX}{user_id}:revoked")
        return exists > 0
    except Exception as e:
        logger.error("Error checking user token revocation for user %s: %s", user_id, e)
        return False
