"""Per-client request budgets using a token bucket.

Verification endpoints are public and unauthenticated, so every bucket is
keyed by scope and client IP.  Each scope is a window budget expressed as
a bucket: `capacity` requests, refilled evenly across the window.

  verification   100 per 15 minutes
  batch           10 per 15 minutes (each call may fan out to 50 lookups)
  search          50 per 15 minutes

A token bucket allows a burst up to `capacity` and then enforces the
window's average rate, without storing a timestamp per request.

The in-memory limiter is per process.  With several API instances behind
a load balancer, the Redis limiter shares one bucket per client.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

WINDOW_SECONDS = 15 * 60


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Outcome of one check.

    retry_after is the number of seconds until the next token (0 if allowed).
    """

    allowed: bool
    remaining: int
    limit: int
    retry_after: float


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """capacity: burst size.  refill_rate: tokens per second."""

    capacity: int = 100
    refill_rate: float = 100 / WINDOW_SECONDS

    @staticmethod
    def per_window(requests: int, window_seconds: int = WINDOW_SECONDS) -> RateLimitConfig:
        return RateLimitConfig(capacity=requests, refill_rate=requests / window_seconds)


VERIFICATION_LIMIT = RateLimitConfig.per_window(100)
BATCH_LIMIT = RateLimitConfig.per_window(10)
SEARCH_LIMIT = RateLimitConfig.per_window(50)


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


class InMemoryRateLimiter:
    """Per-process buckets.

    A bucket that has refilled to capacity behaves exactly like a missing
    one, so every `sweep_every` checks those buckets are dropped.  Memory
    stays proportional to the clients seen within one window.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 1000,
    ) -> None:
        self._clock = clock
        self._sweep_every = sweep_every
        self._checks = 0
        # key -> (tokens_remaining, last_refill_timestamp)
        self._buckets: dict[str, tuple[float, float]] = {}
        self._configs: dict[str, RateLimitConfig] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    def _sweep(self, now: float) -> None:
        for key, (tokens, last_refill) in list(self._buckets.items()):
            config = self._configs[key]
            if tokens + (now - last_refill) * config.refill_rate >= config.capacity:
                del self._buckets[key]
                del self._configs[key]

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = self._clock()
        self._checks += 1
        if self._checks % self._sweep_every == 0:
            self._sweep(now)
        self._configs[key] = config

        if key not in self._buckets:
            self._buckets[key] = (config.capacity - 1, now)
            return RateLimitResult(
                allowed=True,
                remaining=config.capacity - 1,
                limit=config.capacity,
                retry_after=0,
            )

        tokens, last_refill = self._buckets[key]
        tokens = min(config.capacity, tokens + (now - last_refill) * config.refill_rate)

        if tokens >= 1:
            tokens -= 1
            self._buckets[key] = (tokens, now)
            return RateLimitResult(
                allowed=True,
                remaining=int(tokens),
                limit=config.capacity,
                retry_after=0,
            )

        # Empty bucket: time until the next whole token
        retry_after = (1 - tokens) / config.refill_rate
        self._buckets[key] = (tokens, now)
        return RateLimitResult(
            allowed=False,
            remaining=0,
            limit=config.capacity,
            retry_after=retry_after,
        )

    async def reset(self, key: str) -> None:
        self._buckets.pop(key, None)
        self._configs.pop(key, None)


class RedisRateLimiter:
    """Token bucket shared by all instances.

    Refill, consume and write-back run in one Lua script so concurrent
    requests from the same client cannot both spend the same token.
    """

    # KEYS[1] = bucket key
    # ARGV[1] = capacity, ARGV[2] = refill_rate, ARGV[3] = now (seconds)
    # Returns {allowed (0/1), remaining, retry_after_ms}
    _LUA_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local refill_rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])
    local ttl = math.ceil(capacity / refill_rate) + 60

    local bucket = redis.call('HMGET', key, 'tokens', 'last_refill')
    local tokens = tonumber(bucket[1])
    local last_refill = tonumber(bucket[2])

    if tokens == nil then
        tokens = capacity - 1
        redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
        redis.call('EXPIRE', key, ttl)
        return {1, tokens, 0}
    end

    tokens = math.min(capacity, tokens + (now - last_refill) * refill_rate)

    if tokens >= 1 then
        tokens = tokens - 1
        redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
        redis.call('EXPIRE', key, ttl)
        return {1, math.floor(tokens), 0}
    end

    local retry_after_ms = math.ceil((1 - tokens) / refill_rate * 1000)
    redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
    return {0, 0, retry_after_ms}
    """

    def __init__(self, redis_client) -> None:
        self._redis = redis_client
        self._script = None

    def _get_script(self):
        if self._script is None:
            self._script = self._redis.register_script(self._LUA_SCRIPT)
        return self._script

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        script = self._get_script()
        allowed, remaining, retry_after_ms = await script(
            keys=[f"ratelimit:{key}"],
            args=[config.capacity, config.refill_rate, time.time()],
        )
        return RateLimitResult(
            allowed=bool(allowed),
            remaining=int(remaining),
            limit=config.capacity,
            retry_after=int(retry_after_ms) / 1000,
        )

    async def reset(self, key: str) -> None:
        await self._redis.delete(f"ratelimit:{key}")
