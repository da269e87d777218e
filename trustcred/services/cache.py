"""Read-through cache for ledger reads and verification results.

Flow:  caller → cache → hit  → return
                      → miss → ledger / merger → populate cache → return

Two key families share the store:

  credential:{id}     raw ledger record, 300s TTL
  verification:{id}   merged verification result, 60s TTL

Entries expire on their TTL or are deleted explicitly when a credential
changes on-chain (see LedgerReader.invalidate).

The cache is an optimisation, never a dependency: ResilientCache wraps
whichever backend is configured and turns backend failures into misses.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from trustcred.core.metrics import CACHE_OPERATIONS, STORE_DEGRADED

logger = logging.getLogger(__name__)

CREDENTIAL_TTL_SECONDS = 300
VERIFICATION_TTL_SECONDS = 60


def credential_key(credential_id: str) -> str:
    return f"credential:{credential_id}"


def verification_key(credential_id: str) -> str:
    return f"verification:{credential_id}"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL (time to live)."""
        ...

    async def delete(self, key: str) -> None:
        """Explicitly invalidate a cached entry."""
        ...

    async def delete_pattern(self, pattern: str) -> None:
        """Delete all keys matching a glob pattern (e.g., 'verification:*')."""
        ...


class InMemoryCacheService:
    """Per-process cache for dev, tests and single-instance deployments.

    Entries past their TTL read as misses.  Expired entries are dropped when
    read, and swept from the whole store every `sweep_every` writes.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 256,
    ) -> None:
        self._clock = clock
        self._sweep_every = sweep_every
        self._writes = 0
        # key -> (value, deadline in clock seconds)
        self._store: dict[str, tuple[str, float]] = {}
        self._ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if self._clock() >= deadline:
            await self.delete(key)
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = (value, self._clock() + ttl_seconds)
        self._ttls[key] = ttl_seconds
        self._writes += 1
        if self._writes % self._sweep_every == 0:
            self._sweep()

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)
        self._ttls.pop(key, None)

    async def delete_pattern(self, pattern: str) -> None:
        prefix = pattern.rstrip("*")
        for k in [k for k in self._store if k.startswith(prefix)]:
            await self.delete(k)

    def _sweep(self) -> None:
        now = self._clock()
        for k in [k for k, (_, deadline) in self._store.items() if now >= deadline]:
            self._store.pop(k, None)
            self._ttls.pop(k, None)

    def ttl_of(self, key: str) -> int | None:
        return self._ttls.get(key)

    def __len__(self) -> int:
        return len(self._store)

class RedisCacheService:
    """Redis-backed cache, shared across all API instances."""

    # Key prefix prevents collisions with the rate limiter buckets.
    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        return await self._redis.get(f"{self._PREFIX}{key}")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")

    async def delete_pattern(self, pattern: str) -> None:
        # SCAN, not KEYS: KEYS blocks the server while it walks the keyspace.
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(
                cursor, match=f"{self._PREFIX}{pattern}", count=100
            )
            if keys:
                await self._redis.delete(*keys)
            if cursor == 0:
                break


class ResilientCache:
    """Wraps a CacheService so backend failures degrade to cache misses.

    Every swallowed failure is logged and counted under
    store_degraded_total{store="cache"}.
    """

    def __init__(self, backend: CacheService) -> None:
        self.backend = backend

    async def get(self, key: str) -> str | None:
        try:
            value = await self.backend.get(key)
        except Exception:
            logger.warning("Cache read failed key=%s", key, exc_info=True)
            STORE_DEGRADED.labels(store="cache").inc()
            value = None
        CACHE_OPERATIONS.labels(operation="hit" if value is not None else "miss").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self.backend.set(key, value, ttl_seconds)
        except Exception:
            logger.warning("Cache write failed key=%s", key, exc_info=True)
            STORE_DEGRADED.labels(store="cache").inc()

    async def delete(self, key: str) -> None:
        try:
            await self.backend.delete(key)
        except Exception:
            logger.warning("Cache delete failed key=%s", key, exc_info=True)
            STORE_DEGRADED.labels(store="cache").inc()

    async def delete_pattern(self, pattern: str) -> None:
        try:
            await self.backend.delete_pattern(pattern)
        except Exception:
            logger.warning("Cache pattern delete failed pattern=%s", pattern, exc_info=True)
            STORE_DEGRADED.labels(store="cache").inc()
