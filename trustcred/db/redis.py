"""Redis connection management.

Redis backs the read-through cache and the rate-limit buckets.  Both are
optional: when REDIS_URL is unset, or the server cannot be reached at
startup, the container uses in-memory implementations instead.  Better
to serve every request from the ledger than to refuse to start.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


async def connect_redis(redis_url: str) -> aioredis.Redis | None:  # type: ignore[type-arg]
    """Create a pooled client and verify connectivity; None if unreachable."""
    client = aioredis.from_url(
        redis_url,
        decode_responses=True,  # str replies
        max_connections=20,
    )
    try:
        await client.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
    except Exception:
        logger.exception("Redis connection failed on startup")
        await client.aclose()
        return None
    logger.info("Redis connected: %s", redis_url)
    return client


async def close_redis(client: aioredis.Redis) -> None:  # type: ignore[type-arg]
    await client.aclose()
    logger.info("Redis connection pool closed")
