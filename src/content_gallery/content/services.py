"""Page data for the gallery views.

The fetch helpers log and swallow upstream failures, returning None (or an
empty list for a single category) so that views can render partial data.
"""

from typing import Any

import httpx
from structlog import get_logger

from content_gallery.config.settings import Settings
from content_gallery.content.client import ContentClient
from content_gallery.content.factory import ClientContext, ContentClientFactory
from content_gallery.core.async_utils import gather_with_concurrency
from content_gallery.exceptions import GalleryError


logger = get_logger(__name__)

DEFAULT_FANOUT_LIMIT = 8


def _log_fetch_error(event: str, error: Exception, **context: Any) -> None:
    status = getattr(error, "upstream_status", None)
    logger.warning(event, error=str(error), upstream_status=status, **context)


def category_items_query(category_id: str) -> str:
    return f'(taxonomies.categories.nodes.id eq "{category_id}" AND type eq "Image")'


async def fetch_items_for_category(
    client: ContentClient, category_id: str, limit: int
) -> dict[str, Any] | None:
    """Fetch up to ``limit`` image items of a category, with the total count."""
    try:
        return await client.get_items(
            q=category_items_query(category_id),
            limit=limit,
            total_results=True,
        )
    except (GalleryError, httpx.HTTPError) as e:
        _log_fetch_error(
            "fetch_items_for_category_failed", e, category_id=category_id
        )
        return None


async def fetch_categories_for_taxonomy(
    client: ContentClient, taxonomy_id: str
) -> dict[str, Any] | None:
    try:
        return await client.query_taxonomy_categories(taxonomy_id)
    except (GalleryError, httpx.HTTPError) as e:
        _log_fetch_error(
            "fetch_categories_for_taxonomy_failed", e, taxonomy_id=taxonomy_id
        )
        return None


def _has_id(record: dict[str, Any], kind: str) -> bool:
    if record.get("id"):
        return True
    logger.warning("record_without_id_skipped", kind=kind, name=record.get("name"))
    return False


def _record_ids(records: list[dict[str, Any]], kind: str) -> list[str]:
    return [record["id"] for record in records if _has_id(record, kind)]


async def fetch_all_taxonomies_categories(
    client: ContentClient, fanout_limit: int = DEFAULT_FANOUT_LIMIT
) -> list[dict[str, Any]] | None:
    """Return the categories of every taxonomy as one flat list.

    Categories keep taxonomy order; a taxonomy whose categories could not be
    fetched contributes nothing. Records without an id are skipped.
    """
    try:
        taxonomies = await client.get_taxonomies()
    except (GalleryError, httpx.HTTPError) as e:
        _log_fetch_error("fetch_taxonomies_failed", e)
        return None

    taxonomy_ids = _record_ids(taxonomies.get("items", []), "taxonomy")
    results = await gather_with_concurrency(
        fanout_limit,
        *(fetch_categories_for_taxonomy(client, tid) for tid in taxonomy_ids),
    )

    categories: list[dict[str, Any]] = []
    for result in results:
        if result:
            categories.extend(
                category
                for category in result.get("items", [])
                if _has_id(category, "category")
            )
    return categories


async def add_items_to_categories(
    client: ContentClient,
    categories: list[dict[str, Any]],
    limit: int,
    fanout_limit: int = DEFAULT_FANOUT_LIMIT,
) -> list[dict[str, Any]]:
    """Return copies of ``categories`` with their items attached.

    The result has the same length and order as ``categories``. A category
    without an id, or whose items could not be fetched, gets an empty item
    list.
    """

    async def with_items(category: dict[str, Any]) -> dict[str, Any]:
        category_id = category.get("id")
        top_level = (
            await fetch_items_for_category(client, category_id, limit)
            if category_id
            else None
        )
        if top_level is None:
            return {**category, "items": [], "totalResults": 0}
        return {
            **category,
            "items": top_level.get("items", []),
            "totalResults": top_level.get("totalResults", 0),
        }

    return await gather_with_concurrency(
        fanout_limit, *(with_items(category) for category in categories)
    )


class GalleryService:
    """Builds the data behind the home page and the image grid page."""

    def __init__(self, factory: ContentClientFactory, settings: Settings) -> None:
        self.factory = factory
        self.settings = settings

    def image_url(self, original_url: str) -> str:
        """Route image binaries through the proxy when they need credentials.

        A leading content server URL is swapped for the proxy prefix, making
        the URL relative to this application. Other URLs are left alone.
        """
        server_url = self.settings.server_url
        if (
            self.factory.resolver.is_auth_required()
            and server_url
            and original_url.startswith(server_url)
        ):
            return f"{self.settings.proxy.prefix}{original_url[len(server_url) :]}"
        return original_url

    def _add_rendition(
        self, urls: dict[str, Any], rendition: dict[str, Any], format_name: str
    ) -> None:
        fmt = next(
            (f for f in rendition.get("formats", []) if f.get("format") == format_name),
            None,
        )
        if fmt is None:
            return
        link = next(
            (lnk for lnk in fmt.get("links", []) if lnk.get("rel") == "self"), None
        )
        if link is None:
            return

        url = self.image_url(link["href"])
        width = fmt.get("metadata", {}).get("width")

        # jpg doubles as the default src for each named rendition
        if format_name == "jpg":
            urls[rendition["name"].lower()] = url
            urls["jpgSrcset"] += f"{url} {width}w,"
        else:
            urls["srcset"] += f"{url} {width}w,"

    def source_set(self, asset: dict[str, Any]) -> dict[str, Any]:
        """Compute srcset strings and rendition URLs for an image item."""
        urls: dict[str, Any] = {"srcset": "", "jpgSrcset": ""}
        fields = asset.get("fields") or {}

        for rendition in fields.get("renditions") or []:
            self._add_rendition(urls, rendition, "jpg")
            self._add_rendition(urls, rendition, "webp")

        metadata = fields.get("metadata") or {}
        native_links = (fields.get("native") or {}).get("links") or []
        if native_links:
            native = self.image_url(native_links[0]["href"])
            urls["srcset"] += f"{native} {metadata.get('width')}w"
            urls["native"] = native
        urls["width"] = metadata.get("width")
        urls["height"] = metadata.get("height")
        return urls

    def _with_rendition_urls(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [{**item, "renditionUrls": self.source_set(item)} for item in items]

    async def get_home_page_data(self) -> dict[str, Any]:
        """Every category with a few of its items.

        Returns:
            ``{"categories": [...]}``; empty when taxonomies are unavailable
        """
        gallery = self.settings.gallery
        client = self.factory.get_client(ClientContext.SERVER)

        initial = await fetch_all_taxonomies_categories(client, gallery.fanout_limit)
        if not initial:
            return {"categories": []}

        categories = await add_items_to_categories(
            client, initial, gallery.home_items_limit, gallery.fanout_limit
        )
        for category in categories:
            category["items"] = self._with_rendition_urls(category["items"])

        logger.debug("home_page_data_built", category_count=len(categories))
        return {"categories": categories}

    async def get_image_grid_page_data(self, category_id: str) -> dict[str, Any] | None:
        """All items of one category, or None when they could not be fetched."""
        client = self.factory.get_client(ClientContext.SERVER)
        top_level = await fetch_items_for_category(
            client, category_id, self.settings.gallery.grid_items_limit
        )
        if top_level is None:
            return None

        return {
            "totalResults": top_level.get("totalResults", 0),
            "items": self._with_rendition_urls(top_level.get("items", [])),
        }
