"""QR codes that point a phone camera at a credential's verification page.

The encoded payload is a small JSON object:

    {"id": "<64 hex>", "verificationUrl": "<BASE_URL>/verify/<id>",
     "timestamp": <epoch ms>}

Scanners usually open `verificationUrl` directly.  Clients that post the raw
scanned text back to POST /verify/qr get it parsed by `parse_payload()`.
Older codes carried the id under `credentialId`; those still verify.
"""

from __future__ import annotations

import base64
import io
import json
from dataclasses import dataclass

import qrcode
from PIL import Image
from qrcode.constants import (
    ERROR_CORRECT_H,
    ERROR_CORRECT_L,
    ERROR_CORRECT_M,
    ERROR_CORRECT_Q,
)

from trustcred.core.clock import now_ms
from trustcred.core.errors import InvalidArgument

_ERROR_CORRECTION = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


@dataclass(frozen=True, slots=True)
class QROptions:
    width: int = 300
    margin: int = 2
    error_correction: str = "M"

    def __post_init__(self) -> None:
        if not 100 <= self.width <= 1000:
            raise InvalidArgument("width must be between 100 and 1000")
        if not 0 <= self.margin <= 10:
            raise InvalidArgument("margin must be between 0 and 10")
        if self.error_correction not in _ERROR_CORRECTION:
            raise InvalidArgument("errorCorrectionLevel must be one of L, M, Q, H")


def build_payload(credential_id: str, base_url: str, *, now: int | None = None) -> str:
    return json.dumps(
        {
            "id": credential_id,
            "verificationUrl": f"{base_url.rstrip('/')}/verify/{credential_id}",
            "timestamp": now_ms() if now is None else now,
        }
    )


def build_qr(
    credential_id: str,
    base_url: str,
    options: QROptions | None = None,
    *,
    now: int | None = None,
) -> qrcode.QRCode:
    """Lay out the payload as QR modules, without rendering."""
    options = options or QROptions()
    qr = qrcode.QRCode(
        version=None,  # smallest version that fits
        error_correction=_ERROR_CORRECTION[options.error_correction],
        box_size=10,
        border=options.margin,
    )
    qr.add_data(build_payload(credential_id, base_url, now=now))
    qr.make(fit=True)
    return qr


def render_png(qr: qrcode.QRCode, width: int) -> bytes:
    img = qr.make_image(fill_color="black", back_color="white").get_image()
    img = img.convert("RGB").resize((width, width), Image.Resampling.NEAREST)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def generate_qr(
    credential_id: str,
    base_url: str,
    options: QROptions | None = None,
    *,
    now: int | None = None,
) -> bytes:
    """Render the payload as a square PNG of `options.width` pixels."""
    options = options or QROptions()
    return render_png(build_qr(credential_id, base_url, options, now=now), options.width)


def to_data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def parse_payload(data: str) -> str:
    """Extract the credential id from scanned QR text."""
    try:
        payload = json.loads(data)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument("Invalid QR code data format") from exc
    if not isinstance(payload, dict):
        raise InvalidArgument("Invalid QR code data format")

    credential_id = payload.get("id") or payload.get("credentialId")
    if not isinstance(credential_id, str) or not credential_id:
        raise InvalidArgument("Credential ID not found in QR data")
    return credential_id
