"""FastAPI application factory for the content gallery server."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from structlog import get_logger

from content_gallery import __version__
from content_gallery.api.lifecycle import (
    LifecycleComponent,
    execute_shutdown_sequence,
    execute_startup_sequence,
    initialize_content_access_startup,
    initialize_http_client_startup,
    log_server_start,
    shutdown_content_access,
    shutdown_http_client,
)
from content_gallery.api.middleware.errors import setup_error_handlers
from content_gallery.api.middleware.logging import AccessLogMiddleware
from content_gallery.api.middleware.request_id import RequestIDMiddleware
from content_gallery.api.routes.gallery import router as gallery_router
from content_gallery.api.routes.health import router as health_router
from content_gallery.api.routes.proxy import router as proxy_router
from content_gallery.config.settings import Settings, get_settings
from content_gallery.core.logging import setup_logging


logger = get_logger(__name__)


LIFECYCLE_COMPONENTS: list[LifecycleComponent] = [
    {
        "name": "Upstream HTTP Client",
        "startup": initialize_http_client_startup,
        "shutdown": shutdown_http_client,
    },
    {
        "name": "Content Access",
        "startup": initialize_content_access_startup,
        "shutdown": shutdown_content_access,
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager using component-based approach."""
    settings: Settings = app.state.settings

    log_server_start(settings)
    await execute_startup_sequence(LIFECYCLE_COMPONENTS, app, settings)

    yield

    logger.debug("server_stop")
    await execute_shutdown_sequence(LIFECYCLE_COMPONENTS, app)


def create_app(
    settings: Settings | None = None,
    upstream_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override. If None, uses get_settings().
        upstream_transport: Optional httpx transport for all upstream calls

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    if not structlog.is_configured():
        setup_logging(
            json_logs=settings.server.json_logs,
            log_level_name=settings.server.log_level,
            log_file=settings.server.log_file,
        )

    app = FastAPI(
        title="Content Gallery",
        description="Image gallery backend with an authenticated content proxy",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.upstream_transport = upstream_transport

    setup_error_handlers(app)

    app.add_middleware(AccessLogMiddleware)
    # Added last so it runs first and the access log sees the request id
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health_router, tags=["health"])
    app.include_router(gallery_router, prefix="/gallery", tags=["gallery"])
    app.include_router(proxy_router, prefix=settings.proxy.prefix, tags=["proxy"])

    return app


def get_app() -> FastAPI:
    """Get the FastAPI application instance (for ``uvicorn --factory``)."""
    return create_app()
