"""Explicit wiring of every long-lived service.

`build_container(settings)` decides each backend once, at startup:

  REDIS_URL set and reachable  → Redis cache + Redis rate limiter
  otherwise                    → in-memory cache + in-memory limiter
  DATABASE_URL set             → PostgreSQL metadata repo
  otherwise                    → in-memory metadata repo (empty)
  LEDGER_FALLBACK=mock         → synthetic record when the ledger fails

Tests build a ServiceContainer directly with in-memory parts and hand it
to `create_app(container)`; nothing is read from module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from trustcred.core.clock import Clock, now_ms
from trustcred.core.config import Settings
from trustcred.db.engine import create_database, dispose_database
from trustcred.db.redis import close_redis, connect_redis
from trustcred.ledger.client import LedgerClient, StacksLedgerClient
from trustcred.repos.metadata_repo import InMemoryMetadataRepo, MetadataRepo
from trustcred.repos.pg_metadata_repo import PgMetadataRepo
from trustcred.services.cache import (
    InMemoryCacheService,
    RedisCacheService,
    ResilientCache,
)
from trustcred.services.ledger_reader import (
    FailOnLedgerError,
    LedgerFallback,
    LedgerReader,
    MockCredentialFallback,
)
from trustcred.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimiter,
    RedisRateLimiter,
)
from trustcred.services.verification_service import VerificationService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    ledger_client: LedgerClient
    cache: ResilientCache
    repo: MetadataRepo
    rate_limiter: RateLimiter
    reader: LedgerReader
    verifier: VerificationService
    base_url: str = "https://api.trustcred.com"
    rate_limit_enabled: bool = True
    redis: Any = None
    engine: Any = None
    _closed: bool = field(default=False, repr=False)

    @classmethod
    def assemble(
        cls,
        *,
        ledger_client: LedgerClient,
        cache: ResilientCache,
        repo: MetadataRepo,
        rate_limiter: RateLimiter,
        fallback: LedgerFallback | None = None,
        clock: Clock = now_ms,
        **kwargs: Any,
    ) -> ServiceContainer:
        reader = LedgerReader(
            ledger_client, cache, fallback or FailOnLedgerError(), clock=clock
        )
        verifier = VerificationService(reader, repo, cache, clock=clock)
        return cls(
            ledger_client=ledger_client,
            cache=cache,
            repo=repo,
            rate_limiter=rate_limiter,
            reader=reader,
            verifier=verifier,
            **kwargs,
        )

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.ledger_client.aclose()
        if self.redis is not None:
            await close_redis(self.redis)
        if self.engine is not None:
            await dispose_database(self.engine)


async def build_container(settings: Settings) -> ServiceContainer:
    redis_client = await connect_redis(settings.redis_url) if settings.redis_url else None
    if redis_client is not None:
        cache = ResilientCache(RedisCacheService(redis_client))
        rate_limiter: RateLimiter = RedisRateLimiter(redis_client)
    else:
        logger.info("Redis not configured, using in-memory cache and rate limiter")
        cache = ResilientCache(InMemoryCacheService())
        rate_limiter = InMemoryRateLimiter()

    engine = None
    repo: MetadataRepo
    if settings.database_url:
        engine, session_factory = create_database(
            settings.database_url, echo=settings.is_dev
        )
        repo = PgMetadataRepo(session_factory)
    else:
        logger.warning("DATABASE_URL not set, metadata enrichment uses an empty store")
        repo = InMemoryMetadataRepo()

    fallback: LedgerFallback = (
        MockCredentialFallback()
        if settings.ledger_fallback == "mock"
        else FailOnLedgerError()
    )

    ledger_client = StacksLedgerClient(
        api_url=settings.stacks_api_url,
        contract_address=settings.contract_address,
        contract_name=settings.contract_name,
        network=settings.stacks_network,
        timeout=settings.ledger_timeout,
    )
    logger.info(
        "Ledger client ready network=%s contract=%s.%s fallback=%s",
        settings.stacks_network,
        settings.contract_address,
        settings.contract_name,
        settings.ledger_fallback,
    )

    return ServiceContainer.assemble(
        ledger_client=ledger_client,
        cache=cache,
        repo=repo,
        rate_limiter=rate_limiter,
        fallback=fallback,
        base_url=settings.base_url,
        rate_limit_enabled=settings.rate_limit_enabled,
        redis=redis_client,
        engine=engine,
    )
