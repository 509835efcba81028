"""Authentication for upstream content service requests."""

from content_gallery.auth.models import ClientCredentials, OAuthTokenResponse, TokenState
from content_gallery.auth.oauth_client import ClientCredentialsClient, build_basic_auth
from content_gallery.auth.resolver import AuthResolver
from content_gallery.auth.token_cache import REFRESH_MARGIN_SECONDS, TokenCache


__all__ = [
    "AuthResolver",
    "ClientCredentials",
    "ClientCredentialsClient",
    "OAuthTokenResponse",
    "REFRESH_MARGIN_SECONDS",
    "TokenCache",
    "TokenState",
    "build_basic_auth",
]
