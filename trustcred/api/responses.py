"""The JSON envelope shared by every /api/v1 response.

  success: {"success": true,  "data": ..., "timestamp": ms, "processingTime": ms}
  failure: {"success": false, "error": title, "message": detail,
            "timestamp": ms, "processingTime": ms}
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from trustcred.core.clock import now_ms


def _timing(request: Request) -> tuple[int, int]:
    now = now_ms()
    start = getattr(request.state, "start_time", now)
    return now, max(0, now - start)


def success(
    request: Request,
    data: Any,
    *,
    status_code: int = 200,
    **extra: Any,
) -> JSONResponse:
    timestamp, processing_time = _timing(request)
    body: dict[str, Any] = {"success": True, "data": data, **extra}
    body["timestamp"] = timestamp
    body["processingTime"] = processing_time
    return JSONResponse(
        body,
        status_code=status_code,
        headers=getattr(request.state, "rate_limit_headers", None),
    )


def failure(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    *,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    timestamp, processing_time = _timing(request)
    return JSONResponse(
        {
            "success": False,
            "error": error,
            "message": message,
            "timestamp": timestamp,
            "processingTime": processing_time,
        },
        status_code=status_code,
        headers=headers,
    )
