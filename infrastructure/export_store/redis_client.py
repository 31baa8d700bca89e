"""Async Redis connection factory for the export store.

Returns an async redis.Redis client, or None when the connection fails; the
caller then keeps exports in process memory instead.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shared.logging import get_logger

log = get_logger(__name__)


async def create_redis_client(redis_uri: str) -> Optional[aioredis.Redis]:
    """Connect to Redis and return a client, or None on failure."""
    client: aioredis.Redis = aioredis.from_url(
        redis_uri, encoding="utf-8", decode_responses=True
    )
    try:
        await client.ping()
    except RedisError as e:
        log.warning(
            "redis_connection_failed",
            uri=redis_uri.split("@")[-1],  # mask credentials
            error=str(e),
            error_type=type(e).__name__,
            fallback="memory",
        )
        await client.aclose()
        return None
    log.info("redis_connected", uri=redis_uri.split("@")[-1])
    return client
