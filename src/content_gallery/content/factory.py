"""Memoised content clients bound to the application settings."""

from enum import StrEnum

import httpx
from structlog import get_logger

from content_gallery.auth.resolver import AuthResolver
from content_gallery.config.settings import Settings
from content_gallery.content.client import (
    BeforeSend,
    ClientConfig,
    ClientMode,
    ContentClient,
)
from content_gallery.exceptions import ConfigurationError


logger = get_logger(__name__)


class ClientContext(StrEnum):
    """Where the client's requests originate from."""

    SERVER = "server"
    BROWSER = "browser"


def make_auth_hook(resolver: AuthResolver) -> BeforeSend:
    """Create a hook that sets a freshly resolved Authorization header."""

    async def before_send(request: httpx.Request) -> None:
        credential = await resolver.resolve_credential()
        if credential:
            request.headers["Authorization"] = credential

    return before_send


class ContentClientFactory:
    """Produces one long-lived ContentClient per call context.

    Server-side clients talk to the content service directly and, when
    authentication is required, attach credentials through a pre-request
    hook. Browser clients needing authentication are pointed at this
    application's proxy so that credentials never leave the server.
    """

    def __init__(
        self,
        settings: Settings,
        resolver: AuthResolver,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.resolver = resolver
        self._http_client = http_client or httpx.AsyncClient(
            timeout=settings.upstream.timeout
        )
        self._owns_client = http_client is None
        self._clients: dict[ClientContext, ContentClient] = {}

    @property
    def mode(self) -> ClientMode:
        return ClientMode.PREVIEW if self.settings.preview else ClientMode.DELIVERY

    def build_config(self, context: ClientContext) -> ClientConfig:
        """Build the ClientConfig for a call context.

        Raises:
            ConfigurationError: If a proxied browser client is requested
                without PUBLIC_URL configured
        """
        auth_required = self.resolver.is_auth_required()

        if context is ClientContext.BROWSER and auth_required:
            if not self.settings.public_url:
                raise ConfigurationError(
                    "PUBLIC_URL is required for browser clients when authentication is enabled"
                )
            return ClientConfig.from_settings(
                self.settings,
                server_url=f"{self.settings.public_url}{self.settings.proxy.prefix}",
            )

        if context is ClientContext.SERVER and auth_required:
            return ClientConfig.from_settings(
                self.settings, before_send=make_auth_hook(self.resolver)
            )

        return ClientConfig.from_settings(self.settings)

    def get_client(self, context: ClientContext = ClientContext.SERVER) -> ContentClient:
        client = self._clients.get(context)
        if client is None:
            config = self.build_config(context)
            client = ContentClient(config, self._http_client)
            self._clients[context] = client
            logger.debug(
                "content_client_created",
                context=context.value,
                mode=config.mode.value,
                server_url=config.server_url,
                auth_hook=config.before_send is not None,
            )
        return client

    async def aclose(self) -> None:
        self._clients.clear()
        if self._owns_client:
            await self._http_client.aclose()
