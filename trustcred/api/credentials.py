"""Shareable credential views.

- GET  /api/v1/credentials/{credential_id}/public - public info, 404 if absent
- POST /api/v1/credentials/{credential_id}/qr     - verification QR code

The public view omits addresses, hashes and metadata URIs; it is what a
credential holder can safely post on a profile page.
"""

from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from trustcred.api.dependencies import get_container, get_verifier
from trustcred.api.ratelimit import verification_limit
from trustcred.api.responses import success
from trustcred.services import qr_service
from trustcred.services.container import ServiceContainer
from trustcred.services.ledger_reader import normalize_credential_id
from trustcred.services.verification_service import VerificationService

router = APIRouter(
    prefix="/credentials",
    tags=["credentials"],
    dependencies=[Depends(verification_limit)],
)


class QROptionsIn(BaseModel):
    width: int = Field(default=300, ge=100, le=1000)
    margin: int = Field(default=2, ge=0, le=10)
    errorCorrectionLevel: Literal["L", "M", "Q", "H"] = "M"


class QRGenerateIn(BaseModel):
    options: QROptionsIn | None = None


@router.get("/{credential_id}/public")
async def public_credential(
    credential_id: str,
    request: Request,
    verifier: Annotated[VerificationService, Depends(get_verifier)],
) -> JSONResponse:
    info = await verifier.public_info(credential_id)
    return success(request, info.to_dict())


@router.post("/{credential_id}/qr")
async def credential_qr(
    credential_id: str,
    request: Request,
    container: Annotated[ServiceContainer, Depends(get_container)],
    body: QRGenerateIn | None = None,
) -> JSONResponse:
    credential_id = normalize_credential_id(credential_id)
    opts = body.options if body and body.options else QROptionsIn()
    png = qr_service.generate_qr(
        credential_id,
        container.base_url,
        qr_service.QROptions(
            width=opts.width,
            margin=opts.margin,
            error_correction=opts.errorCorrectionLevel,
        ),
    )
    return success(
        request,
        {
            "credentialId": credential_id,
            "qrCodeDataUrl": qr_service.to_data_url(png),
            "format": "png",
        },
    )
