"""Authenticated reverse proxy to the content service.

Browser requests for content and image binaries come through here when the
content service needs credentials. The credential is attached server-side,
so it never appears in anything the browser sends or receives.
"""

from urllib.parse import quote

import httpx
from fastapi import Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from structlog import get_logger

from content_gallery.auth.resolver import AuthResolver
from content_gallery.exceptions import UpstreamError


logger = get_logger(__name__)

# Inbound headers relayed upstream; everything else (notably the browser's
# own Authorization and Cookie headers) stays behind.
FORWARDED_REQUEST_HEADERS = frozenset(
    {
        "accept",
        "accept-encoding",
        "accept-language",
        "content-length",
        "content-type",
        "if-modified-since",
        "if-none-match",
        "range",
        "user-agent",
    }
)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


def _raw_path(request: Request) -> str:
    """Inbound path exactly as the client encoded it."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1")
    return quote(request.scope["path"], safe="/:@!$&'()*+,;=~")


def _has_body(request: Request) -> bool:
    if "transfer-encoding" in request.headers:
        return True
    content_length = request.headers.get("content-length")
    return content_length is not None and content_length.strip() not in ("", "0")


class ProxyHandler:
    """Forwards GET requests under ``prefix`` to the upstream content server.

    Per request: Received -> (non-GET: Dropped) -> AuthResolved ->
    Forwarding -> StreamingResponse -> Done.
    """

    def __init__(
        self,
        resolver: AuthResolver,
        http_client: httpx.AsyncClient,
        *,
        upstream_url: str,
        prefix: str = "/api",
    ) -> None:
        self.resolver = resolver
        self._http_client = http_client
        self.upstream_url = upstream_url.rstrip("/")
        self.prefix = prefix.rstrip("/")

    def build_upstream_url(self, path: str, query: str = "") -> str:
        """Map an inbound proxy path onto the upstream server.

        ``path`` must still be percent-encoded so that escaped characters
        such as `%3F` or `%2F` reach the upstream server unchanged.
        """
        if path == self.prefix or path.startswith(f"{self.prefix}/"):
            path = path[len(self.prefix) :]
        if not path.startswith("/"):
            path = f"/{path}"
        url = f"{self.upstream_url}{path}"
        return f"{url}?{query}" if query else url

    def _outbound_headers(
        self, request: Request, credential: str | None
    ) -> list[tuple[str, str]]:
        headers = [
            (name, value)
            for name, value in request.headers.items()
            if name in FORWARDED_REQUEST_HEADERS
        ]
        if credential:
            headers.append(("authorization", credential))
        return headers

    async def handle(self, request: Request) -> Response | None:
        """Proxy one request.

        Returns:
            A streaming response relaying the upstream reply, or None when
            the request was dropped because it is not a GET

        Raises:
            AuthError: If the credential could not be resolved
            UpstreamError: If the upstream server could not be reached
        """
        if request.method != "GET":
            logger.info(
                "proxy_request_dropped",
                method=request.method,
                path=request.url.path,
            )
            return None

        credential = await self.resolver.resolve_credential()

        url = self.build_upstream_url(_raw_path(request), request.url.query)
        context = getattr(request.state, "context", None)
        if context is not None:
            context.add_metadata(upstream_url=url)
        upstream_request = self._http_client.build_request(
            "GET",
            url,
            headers=self._outbound_headers(request, credential),
            content=request.stream() if _has_body(request) else None,
        )

        logger.debug(
            "proxy_forwarding",
            url=url,
            scheme=upstream_request.url.scheme,
            authenticated=credential is not None,
        )

        try:
            upstream_response = await self._http_client.send(
                upstream_request, stream=True
            )
        except httpx.HTTPError as e:
            logger.error("proxy_upstream_unreachable", url=url, error=str(e))
            raise UpstreamError(f"Upstream service error: {e}", url=url) from e

        logger.debug(
            "proxy_response_received",
            url=url,
            status_code=upstream_response.status_code,
            content_type=upstream_response.headers.get("content-type"),
        )

        response = StreamingResponse(
            upstream_response.aiter_raw(),
            status_code=upstream_response.status_code,
            background=BackgroundTask(upstream_response.aclose),
        )
        # Raw pairs keep repeated headers and the upstream byte values as-is
        response.raw_headers = [
            (name.lower(), value)
            for name, value in upstream_response.headers.raw
            if name.lower().decode("latin-1") not in HOP_BY_HOP_HEADERS
        ]
        return response
