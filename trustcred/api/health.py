"""Liveness, readiness and Prometheus scrape endpoints.

/health (liveness) answers 200 whenever the process can respond; the
`status` field reports degraded dependencies.  Returning 503 there would
make the orchestrator restart a process that is only impaired.

/ready (readiness) answers 503 while the metadata database is configured
but unreachable, taking the instance out of rotation until it recovers.
Redis is optional (in-memory fallbacks exist) and never fails readiness.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from trustcred.api.dependencies import get_container
from trustcred.services.container import ServiceContainer

router = APIRouter(tags=["health"])


async def _redis_status(container: ServiceContainer) -> str:
    if container.redis is None:
        return "not_configured"
    try:
        await container.redis.ping()
    except Exception:
        return "degraded"
    return "ok"


@router.get("/health")
async def health(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    checks = {
        "redis": await _redis_status(container),
        "database": "ok" if await container.repo.ping() else "degraded",
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {
        "status": overall,
        "checks": checks,
        "network": container.reader.network_info()["network"],
    }


@router.get("/ready")
async def ready(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> Response:
    if not await container.repo.ping():
        return Response(status_code=503)
    return Response(status_code=200)


@router.get("/metrics", include_in_schema=False, tags=["observability"])
async def metrics() -> Response:
    """Prometheus text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
