"""Async REST client for the content service delivery and preview APIs."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx
import orjson
from structlog import get_logger

from content_gallery.config.settings import Settings
from content_gallery.exceptions import UpstreamError


logger = get_logger(__name__)

BeforeSend = Callable[[httpx.Request], Awaitable[None]]


class ClientMode(StrEnum):
    """Which content the client can see."""

    DELIVERY = "delivery"  # published content only
    PREVIEW = "preview"  # includes unpublished content, requires auth


@dataclass(frozen=True)
class ClientConfig:
    """Connection details for one content client."""

    server_url: str
    api_version: str
    channel_token: str
    mode: ClientMode = ClientMode.DELIVERY
    before_send: BeforeSend | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        server_url: str | None = None,
        before_send: BeforeSend | None = None,
    ) -> "ClientConfig":
        return cls(
            server_url=(server_url if server_url is not None else settings.server_url),
            api_version=settings.api_version,
            channel_token=settings.channel_token,
            mode=ClientMode.PREVIEW if settings.preview else ClientMode.DELIVERY,
            before_send=before_send,
        )

    @property
    def api_base(self) -> str:
        area = "published" if self.mode is ClientMode.DELIVERY else "management"
        return f"{self.server_url.rstrip('/')}/content/{area}/api/{self.api_version}"


class ContentClient:
    """Client for the content service REST API.

    Every request goes through the optional ``before_send`` hook right before
    it is sent, so per-request headers (such as a freshly refreshed
    Authorization value) are never cached on the client.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._http_client = http_client or httpx.AsyncClient(timeout=None)
        self._owns_client = http_client is None

    @property
    def mode(self) -> ClientMode:
        return self.config.mode

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        if self.config.channel_token:
            query["channelToken"] = self.config.channel_token

        request = self._http_client.build_request(
            "GET", f"{self.config.api_base}{path}", params=query
        )
        if self.config.before_send is not None:
            await self.config.before_send(request)

        try:
            response = await self._http_client.send(request)
        except httpx.HTTPError as e:
            raise UpstreamError(
                f"Content request failed: {e}", url=str(request.url)
            ) from e

        if not response.is_success:
            raise UpstreamError(
                f"Content service returned {response.status_code}",
                upstream_status=response.status_code,
                url=str(request.url),
            )

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise UpstreamError(
                f"Content service returned invalid JSON: {e}",
                upstream_status=response.status_code,
                url=str(request.url),
            ) from e

    async def get_items(
        self,
        *,
        q: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        total_results: bool = False,
        fields: str | None = None,
        order_by: str | None = None,
    ) -> dict[str, Any]:
        """Query items, e.g. ``q='(type eq "Image")'``."""
        params: dict[str, Any] = {
            "q": q,
            "limit": limit,
            "offset": offset,
            "fields": fields,
            "orderBy": order_by,
        }
        if total_results:
            params["totalResults"] = "true"
        return await self._get("/items", params)

    async def get_item(self, item_id: str, *, expand: str | None = None) -> dict[str, Any]:
        return await self._get(f"/items/{item_id}", {"expand": expand})

    async def get_taxonomies(self) -> dict[str, Any]:
        return await self._get("/taxonomies")

    async def query_taxonomy_categories(
        self,
        taxonomy_id: str,
        *,
        q: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            f"/taxonomies/{taxonomy_id}/categories", {"q": q, "limit": limit}
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()
