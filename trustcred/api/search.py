"""GET /api/v1/search/credentials: browse active credentials.

Filters are substring matches (issuer name or exact Stacks address,
schema name).  The response adds a `pagination` block next to `data` so
clients can page without a second count request.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from trustcred.api.dependencies import get_verifier
from trustcred.api.ratelimit import search_limit
from trustcred.api.responses import success
from trustcred.services.verification_service import VerificationService

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/credentials", dependencies=[Depends(search_limit)])
async def search_credentials(
    request: Request,
    verifier: Annotated[VerificationService, Depends(get_verifier)],
    issuer: Annotated[str | None, Query(min_length=2, max_length=100)] = None,
    schema: Annotated[str | None, Query(min_length=2, max_length=100)] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> JSONResponse:
    result = await verifier.search_public(
        issuer=issuer, schema=schema, limit=limit, offset=offset
    )
    return success(
        request,
        result.to_dict(),
        pagination={
            "limit": limit,
            "offset": offset,
            "total": result.total,
            "hasMore": offset + limit < result.total,
        },
    )
