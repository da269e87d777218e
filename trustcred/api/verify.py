"""Public verification endpoints.

- GET  /api/v1/verify/health          - ledger + database health
- GET  /api/v1/verify/docs            - endpoint summary for integrators
- POST /api/v1/verify/batch           - up to 50 ids in one call
- POST /api/v1/verify/qr              - verify from scanned QR text
- GET  /api/v1/verify/{credential_id} - single verification

The fixed paths are registered before `/{credential_id}` so "health" and
"docs" are never taken for an id.  A credential that is not on the ledger
still answers 200 with `exists: false`: "not found" is a verification
outcome here, not a routing failure.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, StringConstraints

from trustcred.api.dependencies import get_container, get_reader, get_verifier
from trustcred.api.ratelimit import batch_limit, verification_limit
from trustcred.api.responses import success
from trustcred.services.container import ServiceContainer
from trustcred.services.ledger_reader import LedgerReader
from trustcred.services.verification_service import MAX_BATCH_SIZE, VerificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verify", tags=["verification"])

CredentialId = Annotated[str, StringConstraints(pattern=r"^[0-9a-fA-F]{64}$")]


class BatchVerifyIn(BaseModel):
    credentialIds: list[CredentialId] = Field(min_length=1, max_length=MAX_BATCH_SIZE)


class QRVerifyIn(BaseModel):
    qrData: str = Field(min_length=10, max_length=1000)


@router.get("/health")
async def verification_health(
    request: Request,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> JSONResponse:
    """200 when both the ledger and the metadata database answer, else 503."""
    ledger = await container.reader.health_check()
    database_ok = await container.repo.ping()
    healthy = ledger.healthy and database_ok

    data = {
        "status": "healthy" if healthy else "degraded",
        "services": {
            "blockchain": {
                "healthy": ledger.healthy,
                "network": ledger.network,
                "latency": ledger.latency_ms,
            },
            "database": {"healthy": database_ok},
        },
    }
    if not healthy:
        logger.warning(
            "Verification health degraded ledger=%s database=%s",
            ledger.healthy,
            database_ok,
        )
    return success(request, data, status_code=200 if healthy else 503)


@router.get("/docs")
async def verification_docs(
    request: Request,
    reader: Annotated[LedgerReader, Depends(get_reader)],
) -> JSONResponse:
    base = "/api/v1"
    data = {
        "title": "TrustCred Verification API",
        "version": "1.0.0",
        "blockchain": reader.network_info(),
        "endpoints": [
            {
                "method": "GET",
                "path": f"{base}/verify/{{credentialId}}",
                "description": "Verify a single credential by its 64-character hex id",
                "rateLimit": "100 requests per 15 minutes",
            },
            {
                "method": "POST",
                "path": f"{base}/verify/batch",
                "description": f"Verify up to {MAX_BATCH_SIZE} credentials at once",
                "rateLimit": "10 requests per 15 minutes",
            },
            {
                "method": "POST",
                "path": f"{base}/verify/qr",
                "description": "Verify a credential from scanned QR code data",
                "rateLimit": "100 requests per 15 minutes",
            },
            {
                "method": "GET",
                "path": f"{base}/credentials/{{credentialId}}/public",
                "description": "Public information about a credential",
                "rateLimit": "100 requests per 15 minutes",
            },
            {
                "method": "POST",
                "path": f"{base}/credentials/{{credentialId}}/qr",
                "description": "Generate a verification QR code",
                "rateLimit": "100 requests per 15 minutes",
            },
            {
                "method": "GET",
                "path": f"{base}/search/credentials",
                "description": "Search active credentials by issuer or schema",
                "rateLimit": "50 requests per 15 minutes",
            },
            {
                "method": "GET",
                "path": f"{base}/verify/health",
                "description": "Ledger and database health",
                "rateLimit": None,
            },
        ],
    }
    return success(request, data)


@router.post("/batch", dependencies=[Depends(batch_limit)])
async def verify_batch(
    body: BatchVerifyIn,
    request: Request,
    verifier: Annotated[VerificationService, Depends(get_verifier)],
) -> JSONResponse:
    batch = await verifier.verify_batch(body.credentialIds)
    return success(request, batch.to_dict())


@router.post("/qr", dependencies=[Depends(verification_limit)])
async def verify_qr(
    body: QRVerifyIn,
    request: Request,
    verifier: Annotated[VerificationService, Depends(get_verifier)],
) -> JSONResponse:
    result = await verifier.verify_from_qr(body.qrData)
    return success(request, result.to_dict())


@router.get("/{credential_id}", dependencies=[Depends(verification_limit)])
async def verify_credential(
    credential_id: str,
    request: Request,
    verifier: Annotated[VerificationService, Depends(get_verifier)],
) -> JSONResponse:
    result = await verifier.verify(credential_id)
    return success(request, result.to_dict())
