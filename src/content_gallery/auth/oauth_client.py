"""Client-credentials token client for the identity service."""

import base64
from urllib.parse import quote, urljoin

import httpx
import orjson
from pydantic import ValidationError
from structlog import get_logger

from content_gallery.auth.models import ClientCredentials, OAuthTokenResponse
from content_gallery.exceptions import AuthError


logger = get_logger(__name__)

TOKEN_PATH = "/oauth2/v1/token"

# Characters left unescaped in the scope parameter
_SCOPE_SAFE_CHARS = "-_.!~*'()"


def _truncate_error_text(response_text: str) -> str:
    """Truncate response text for compact error logging."""
    if len(response_text) > 200:
        return f"{response_text[:100]}...{response_text[-50:]}"
    if len(response_text) > 100:
        return f"{response_text[:100]}..."
    return response_text


def build_basic_auth(client_id: str, client_secret: str) -> str:
    """Build a Basic Authorization header value from client id and secret."""
    raw = f"{client_id}:{client_secret}".encode()
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


class ClientCredentialsClient:
    """Fetches access tokens with the OAuth2 client-credentials grant.

    The httpx client is shared with the rest of the application and is not
    closed here.
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        http_client: httpx.AsyncClient,
    ) -> None:
        self.credentials = credentials
        self._http_client = http_client

    @property
    def token_url(self) -> str:
        # An absolute path replaces any path on the issuer URL
        return urljoin(self.credentials.issuer_url, TOKEN_PATH)

    def _build_body(self) -> str:
        body = "grant_type=client_credentials"
        if self.credentials.scope:
            body += f"&scope={quote(self.credentials.scope, safe=_SCOPE_SAFE_CHARS)}"
        return body

    async def fetch_token(self) -> OAuthTokenResponse:
        """Request a new access token.

        Returns:
            Parsed token response

        Raises:
            AuthError: On transport failure, non-2xx status or malformed body
        """
        headers = {
            "Authorization": build_basic_auth(
                self.credentials.client_id, self.credentials.client_secret
            ),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        try:
            response = await self._http_client.post(
                self.token_url,
                content=self._build_body(),
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error(
                "token_request_failed",
                token_url=self.token_url,
                error=str(e),
            )
            raise AuthError(f"Token request failed: {e}") from e

        if not response.is_success:
            preview = _truncate_error_text(response.text)
            logger.error(
                "token_request_rejected",
                token_url=self.token_url,
                status_code=response.status_code,
                response_preview=preview,
            )
            raise AuthError(
                f"Token endpoint returned {response.status_code}",
                status_code=response.status_code,
                response_text=preview,
            )

        try:
            token = OAuthTokenResponse.model_validate(orjson.loads(response.content))
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.error(
                "token_response_invalid",
                token_url=self.token_url,
                error=str(e),
            )
            raise AuthError(f"Malformed token response: {e}") from e

        logger.debug("access_token_fetched", expires_in=token.expires_in)
        return token
