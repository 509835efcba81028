"""Application lifecycle management helpers."""

from collections.abc import Awaitable, Callable

import httpx
from fastapi import FastAPI
from structlog import get_logger
from typing_extensions import TypedDict

from content_gallery.auth.resolver import AuthResolver
from content_gallery.config.settings import Settings
from content_gallery.content.factory import ContentClientFactory
from content_gallery.content.services import GalleryService
from content_gallery.exceptions import GalleryError
from content_gallery.proxy.handler import ProxyHandler


logger = get_logger(__name__)


class LifecycleComponent(TypedDict):
    name: str
    startup: Callable[[FastAPI, Settings], Awaitable[None]] | None
    shutdown: Callable[[FastAPI], Awaitable[None]] | None


def _event_name(component_name: str) -> str:
    return component_name.lower().replace(" ", "_")


async def run_startup_component(
    component: LifecycleComponent,
    app: FastAPI,
    settings: Settings,
) -> None:
    """Execute a single startup component.

    Startup failures are logged and re-raised: the application cannot serve
    content without its upstream wiring.
    """
    if not component["startup"]:
        return

    component_name = component["name"]
    try:
        logger.debug(f"starting_{_event_name(component_name)}")
        await component["startup"](app, settings)
    except (OSError, RuntimeError, ValueError, GalleryError) as e:
        logger.error(
            f"{_event_name(component_name)}_startup_failed",
            error=str(e),
            component=component_name,
        )
        raise


async def run_shutdown_component(component: LifecycleComponent, app: FastAPI) -> None:
    """Execute a single shutdown component with error handling."""
    if not component["shutdown"]:
        return

    component_name = component["name"]
    try:
        logger.debug(f"stopping_{_event_name(component_name)}")
        await component["shutdown"](app)
    except (OSError, RuntimeError) as e:
        logger.error(
            f"{_event_name(component_name)}_shutdown_failed",
            error=str(e),
            component=component_name,
        )


async def execute_startup_sequence(
    components: list[LifecycleComponent],
    app: FastAPI,
    settings: Settings,
) -> None:
    for component in components:
        await run_startup_component(component, app, settings)


async def execute_shutdown_sequence(
    components: list[LifecycleComponent],
    app: FastAPI,
) -> None:
    """Execute shutdown components in reverse order."""
    for component in reversed(components):
        await run_shutdown_component(component, app)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


async def initialize_http_client_startup(app: FastAPI, settings: Settings) -> None:
    """Create the shared upstream HTTP client.

    Tests can set ``app.state.upstream_transport`` to route every upstream
    call (content, images, tokens) through a fake transport.
    """
    transport: httpx.AsyncBaseTransport | None = getattr(
        app.state, "upstream_transport", None
    )
    app.state.http_client = httpx.AsyncClient(
        timeout=settings.upstream.timeout,
        transport=transport,
    )


async def shutdown_http_client(app: FastAPI) -> None:
    client: httpx.AsyncClient | None = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()
        app.state.http_client = None


async def initialize_content_access_startup(app: FastAPI, settings: Settings) -> None:
    """Wire the auth resolver, client factory, proxy handler and gallery service."""
    http_client: httpx.AsyncClient = app.state.http_client

    resolver = AuthResolver.from_settings(settings, http_client)
    factory = ContentClientFactory(settings, resolver, http_client)

    app.state.auth_resolver = resolver
    app.state.client_factory = factory
    app.state.proxy_handler = ProxyHandler(
        resolver,
        http_client,
        upstream_url=settings.server_url,
        prefix=settings.proxy.prefix,
    )
    app.state.gallery_service = GalleryService(factory, settings)

    logger.info(
        "content_access_ready",
        server_url=settings.server_url,
        mode=factory.mode.value,
        auth_required=resolver.is_auth_required(),
    )


async def shutdown_content_access(app: FastAPI) -> None:
    factory: ContentClientFactory | None = getattr(app.state, "client_factory", None)
    if factory is not None:
        await factory.aclose()


def log_server_start(settings: Settings) -> None:
    logger.info(
        "server_start",
        host=settings.server.host,
        port=settings.server.port,
        url=f"http://{settings.server.host}:{settings.server.port}",
    )
    logger.debug("server_configured", settings=settings.model_dump_safe())
