"""Rate limiting dependency for FastAPI routes.

A dependency rather than a middleware so each route opts into its own
budget, and health, docs and metrics stay unlimited:

  GET  /verify/{id}, POST /verify/qr, credential routes → verification
  POST /verify/batch                                    → batch
  GET  /search/credentials                              → search

The endpoints are anonymous, so the key is scope plus client IP.  Headers
X-RateLimit-Limit / X-RateLimit-Remaining are attached to successful
responses too, so clients can throttle themselves before a 429.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from trustcred.core.metrics import RATE_LIMIT_HITS
from trustcred.services.rate_limiter import (
    BATCH_LIMIT,
    SEARCH_LIMIT,
    VERIFICATION_LIMIT,
    RateLimitConfig,
)

logger = logging.getLogger(__name__)

_MESSAGES = {
    "verification": "Too many verification requests from this IP, please try again later.",
    "batch": "Too many batch verification requests, please try again later.",
    "search": "Too many search requests, please try again later.",
}


def require_rate_limit(scope: str, config: RateLimitConfig):
    """Dependency factory: enforce `config` for `scope` on a route.

    @router.post("/verify/batch", dependencies=[Depends(require_rate_limit(
        "batch", BATCH_LIMIT))])
    """

    async def _check(request: Request) -> None:
        container = request.app.state.container
        if not container.rate_limit_enabled:
            return

        key = f"{scope}:{_client_ip(request)}"
        result = await container.rate_limiter.check(key, config)
        request.state.rate_limit_headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
        }

        if not result.allowed:
            RATE_LIMIT_HITS.labels(scope=scope).inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=_MESSAGES.get(scope, "Rate limit exceeded"),
                headers={
                    "Retry-After": str(int(result.retry_after) + 1),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return _check


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


verification_limit = require_rate_limit("verification", VERIFICATION_LIMIT)
batch_limit = require_rate_limit("batch", BATCH_LIMIT)
search_limit = require_rate_limit("search", SEARCH_LIMIT)
