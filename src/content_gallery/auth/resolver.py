"""Decides whether upstream calls need credentials and resolves them."""

import httpx
from structlog import get_logger

from content_gallery.auth.models import ClientCredentials
from content_gallery.auth.oauth_client import ClientCredentialsClient
from content_gallery.auth.token_cache import TokenCache
from content_gallery.config.settings import Settings
from content_gallery.exceptions import ConfigurationError


logger = get_logger(__name__)


class AuthResolver:
    """Resolves the Authorization value for requests to the content service.

    A static value always wins. Otherwise, when a token cache is present the
    credential comes from the OAuth client-credentials flow. Without either,
    no authentication is required.
    """

    def __init__(
        self,
        static_value: str | None = None,
        token_cache: TokenCache | None = None,
    ) -> None:
        self._static_value = static_value or None
        self._token_cache = token_cache

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: httpx.AsyncClient
    ) -> "AuthResolver":
        """Build a resolver from settings.

        Raises:
            ConfigurationError: If OAuth is selected but the issuer URL is missing
        """
        if settings.auth:
            logger.debug("auth_mode_selected", mode="static")
            return cls(static_value=settings.auth)

        if settings.oauth_enabled:
            if not settings.idcs_url:
                raise ConfigurationError(
                    "IDCS_URL is required when CLIENT_ID is configured"
                )
            credentials = ClientCredentials(
                client_id=settings.client_id,
                client_secret=settings.client_secret or "",
                scope=settings.client_scope_url,
                issuer_url=settings.idcs_url,
            )
            logger.debug("auth_mode_selected", mode="oauth_client_credentials")
            return cls(
                token_cache=TokenCache(ClientCredentialsClient(credentials, http_client))
            )

        logger.debug("auth_mode_selected", mode="none")
        return cls()

    @property
    def token_cache(self) -> TokenCache | None:
        return self._token_cache

    def is_auth_required(self) -> bool:
        return self._static_value is not None or self._token_cache is not None

    async def resolve_credential(self) -> str | None:
        """Return the credential to send upstream, or None when not needed.

        Raises:
            AuthError: If the OAuth token could not be refreshed
        """
        if self._static_value is not None:
            return self._static_value
        if self._token_cache is not None:
            return await self._token_cache.get_credential()
        return None
