"""Cache backends and the failure-absorbing wrapper."""

from __future__ import annotations

import asyncio

from prometheus_client import REGISTRY

from tests.conftest import FakeClock
from trustcred.services.cache import (
    InMemoryCacheService,
    RedisCacheService,
    ResilientCache,
    credential_key,
    verification_key,
)


def _sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels=labels) or 0.0


class _BrokenBackend:
    async def get(self, key: str) -> str | None:
        raise ConnectionError("redis down")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        raise ConnectionError("redis down")

    async def delete(self, key: str) -> None:
        raise ConnectionError("redis down")

    async def delete_pattern(self, pattern: str) -> None:
        raise ConnectionError("redis down")


class _FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisCacheService."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys):
        for k in keys:
            self.data.pop(k, None)

    async def scan(self, cursor, match, count):
        prefix = match.rstrip("*")
        return 0, [k for k in self.data if k.startswith(prefix)]


def test_key_layout() -> None:
    assert credential_key("ab") == "credential:ab"
    assert verification_key("ab") == "verification:ab"


def test_in_memory_roundtrip_and_ttl(cache_backend: InMemoryCacheService) -> None:
    cache = cache_backend
    asyncio.run(cache.set("credential:x", "v", 300))
    assert asyncio.run(cache.get("credential:x")) == "v"
    assert cache.ttl_of("credential:x") == 300

    asyncio.run(cache.delete_pattern("credential:*"))
    assert asyncio.run(cache.get("credential:x")) is None


def test_in_memory_entry_expires_after_ttl(
    cache_backend: InMemoryCacheService, cache_clock: FakeClock
) -> None:
    asyncio.run(cache_backend.set("verification:x", "v", 60))

    cache_clock.advance(59)
    assert asyncio.run(cache_backend.get("verification:x")) == "v"

    cache_clock.advance(1)
    assert asyncio.run(cache_backend.get("verification:x")) is None
    assert cache_backend.ttl_of("verification:x") is None
    assert len(cache_backend) == 0


def test_in_memory_sweeps_expired_entries_on_write(cache_clock: FakeClock) -> None:
    cache = InMemoryCacheService(clock=cache_clock, sweep_every=4)
    for i in range(3):
        asyncio.run(cache.set(f"credential:{i}", "v", 300))
    cache_clock.advance(300)

    asyncio.run(cache.set("credential:fresh", "v", 300))

    assert len(cache) == 1
    assert asyncio.run(cache.get("credential:fresh")) == "v"


def test_redis_backend_prefixes_keys() -> None:
    fake = _FakeRedis()
    cache = RedisCacheService(fake)

    asyncio.run(cache.set("verification:x", "v", 60))
    assert fake.data == {"cache:verification:x": "v"}
    assert fake.ttls == {"cache:verification:x": 60}
    assert asyncio.run(cache.get("verification:x")) == "v"

    asyncio.run(cache.delete_pattern("verification:*"))
    assert fake.data == {}


def test_resilient_cache_turns_failures_into_misses() -> None:
    cache = ResilientCache(_BrokenBackend())
    before = _sample("store_degraded_total", {"store": "cache"})

    assert asyncio.run(cache.get("credential:x")) is None
    asyncio.run(cache.set("credential:x", "v", 300))
    asyncio.run(cache.delete("credential:x"))

    assert _sample("store_degraded_total", {"store": "cache"}) - before == 3


def test_resilient_cache_counts_hits_and_misses() -> None:
    cache = ResilientCache(InMemoryCacheService())
    hits = _sample("cache_operations_total", {"operation": "hit"})
    misses = _sample("cache_operations_total", {"operation": "miss"})

    asyncio.run(cache.get("credential:absent"))
    asyncio.run(cache.set("credential:present", "v", 300))
    asyncio.run(cache.get("credential:present"))

    assert _sample("cache_operations_total", {"operation": "hit"}) - hits == 1
    assert _sample("cache_operations_total", {"operation": "miss"}) - misses == 1
