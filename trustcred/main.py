from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trustcred.api.credentials import router as credentials_router
from trustcred.api.errors import install_error_handlers
from trustcred.api.health import router as health_router
from trustcred.api.search import router as search_router
from trustcred.api.verify import router as verify_router
from trustcred.core.config import SETTINGS, Settings
from trustcred.core.logging import setup_logging
from trustcred.middleware.metrics import MetricsMiddleware
from trustcred.middleware.request_context import RequestContextMiddleware
from trustcred.services.container import ServiceContainer, build_container

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app(
    container: ServiceContainer | None = None,
    settings: Settings = SETTINGS,
) -> FastAPI:
    """Build the application.

    An injected container is used as-is and left open on shutdown (its
    owner closes it).  Without one, the lifespan builds a container from
    `settings` and closes it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        owned = None
        if getattr(app.state, "container", None) is None:
            owned = await build_container(settings)
            app.state.container = owned
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
                app.state.container = None

    app = FastAPI(
        title="trustcred-verification",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
    )
    app.state.container = container
    app.state.expose_error_details = not settings.is_prod

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Last-added runs first: RequestContext → Metrics → CORS → route handler,
    # so every request has an id and start time before anything else runs.
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware)

    install_error_handlers(app)

    api = APIRouter(prefix=API_PREFIX)
    api.include_router(verify_router)
    api.include_router(credentials_router)
    api.include_router(search_router)
    app.include_router(api)
    app.include_router(health_router)

    return app


app = create_app()

logger.info(
    "trustcred-verification configured  env=%s log_level=%s port=%d network=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.stacks_network,
    "on" if SETTINGS.is_dev else "off",
)
