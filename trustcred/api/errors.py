"""Exception handlers that render every failure in the response envelope.

Outside prod the message carries the exception detail; in prod it is the
error class's fixed public message, so ledger and database internals never
reach the caller.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from trustcred.api.responses import failure
from trustcred.core.errors import TrustCredError

logger = logging.getLogger(__name__)

_HTTP_TITLES = {
    404: "Not Found",
    405: "Method Not Allowed",
    429: "Too Many Requests",
}


def _expose_details(request: Request) -> bool:
    return getattr(request.app.state, "expose_error_details", True)


async def _trustcred_error(request: Request, exc: TrustCredError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.title, exc)
    if _expose_details(request):
        message = str(exc) or exc.public_message
    else:
        message = exc.public_message
    return failure(request, exc.status_code, exc.title, message)


async def _validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(
            str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")
        )
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "The request is invalid"
    return failure(request, 400, "Validation Error", message)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    title = _HTTP_TITLES.get(exc.status_code, "Request Failed")
    return failure(
        request,
        exc.status_code,
        title,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if _expose_details(request) else "An unexpected error occurred"
    return failure(request, 500, "Internal Server Error", message)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrustCredError, _trustcred_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error)
