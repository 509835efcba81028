"""Tests for the gallery page data services."""

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from content_gallery.auth.resolver import AuthResolver
from content_gallery.config.settings import Settings
from content_gallery.content.factory import ContentClientFactory
from content_gallery.content.services import (
    GalleryService,
    add_items_to_categories,
    category_items_query,
    fetch_all_taxonomies_categories,
    fetch_items_for_category,
)
from content_gallery.exceptions import UpstreamError


def _image(item_id: str, host: str = "https://content.example.com") -> dict[str, Any]:
    base = f"{host}/content/published/api/v1.1/assets/{item_id}"
    return {
        "id": item_id,
        "name": f"{item_id}.jpg",
        "fields": {
            "metadata": {"width": 1600, "height": 900},
            "native": {"links": [{"href": f"{base}/native/{item_id}.jpg"}]},
            "renditions": [
                {
                    "name": "Thumbnail",
                    "formats": [
                        {
                            "format": "jpg",
                            "metadata": {"width": 150},
                            "links": [{"rel": "self", "href": f"{base}/Thumbnail/jpg"}],
                        },
                        {
                            "format": "webp",
                            "metadata": {"width": 150},
                            "links": [{"rel": "self", "href": f"{base}/Thumbnail/webp"}],
                        },
                    ],
                }
            ],
        },
    }


def _service(settings: Settings, resolver: AuthResolver, client: Any) -> GalleryService:
    factory = MagicMock(spec=ContentClientFactory)
    factory.resolver = resolver
    factory.get_client.return_value = client
    return GalleryService(factory, settings)


class TestFetchHelpers:
    def test_category_items_query(self) -> None:
        assert category_items_query("cat-1") == (
            '(taxonomies.categories.nodes.id eq "cat-1" AND type eq "Image")'
        )

    async def test_fetch_items_for_category_requests_total(self) -> None:
        client = MagicMock()
        client.get_items = AsyncMock(return_value={"items": [], "totalResults": 0})

        await fetch_items_for_category(client, "cat-1", 4)

        client.get_items.assert_awaited_once_with(
            q=category_items_query("cat-1"), limit=4, total_results=True
        )

    async def test_fetch_items_for_category_failure_returns_none(self) -> None:
        client = MagicMock()
        client.get_items = AsyncMock(side_effect=UpstreamError("down", upstream_status=500))

        assert await fetch_items_for_category(client, "cat-1", 4) is None

    async def test_all_taxonomies_flattened_in_order(self) -> None:
        delays = {"t1": 0.03, "t2": 0.0, "t3": 0.01}

        async def query_categories(taxonomy_id: str) -> dict[str, Any]:
            await asyncio.sleep(delays[taxonomy_id])
            if taxonomy_id == "t3":
                raise UpstreamError("down", upstream_status=503)
            return {"items": [{"id": f"{taxonomy_id}-a"}, {"id": f"{taxonomy_id}-b"}]}

        client = MagicMock()
        client.get_taxonomies = AsyncMock(
            return_value={"items": [{"id": "t1"}, {"id": "t2"}, {"id": "t3"}]}
        )
        client.query_taxonomy_categories = query_categories

        categories = await fetch_all_taxonomies_categories(client)

        assert [c["id"] for c in categories] == ["t1-a", "t1-b", "t2-a", "t2-b"]

    async def test_records_without_id_are_skipped(self) -> None:
        client = MagicMock()
        client.get_taxonomies = AsyncMock(
            return_value={"items": [{"name": "No id"}, {"id": "t1"}]}
        )
        client.query_taxonomy_categories = AsyncMock(
            return_value={"items": [{"name": "Orphan"}, {"id": "c1"}]}
        )

        categories = await fetch_all_taxonomies_categories(client)

        assert categories == [{"id": "c1"}]
        client.query_taxonomy_categories.assert_awaited_once_with("t1")

    async def test_all_taxonomies_failure_returns_none(self) -> None:
        client = MagicMock()
        client.get_taxonomies = AsyncMock(side_effect=UpstreamError("down"))

        assert await fetch_all_taxonomies_categories(client) is None


class TestAddItemsToCategories:
    async def test_order_preserved_with_varied_latency(self) -> None:
        categories = [{"id": f"c{i}", "name": f"Category {i}"} for i in range(6)]

        async def get_items(*, q: str, limit: int, total_results: bool) -> dict[str, Any]:
            index = int(q.split('"')[1][1:])
            await asyncio.sleep((6 - index) * 0.005)
            return {"items": [{"id": f"item-{index}"}], "totalResults": index * 10}

        client = MagicMock()
        client.get_items = get_items

        result = await add_items_to_categories(client, categories, limit=4)

        assert [c["id"] for c in result] == [c["id"] for c in categories]
        assert [c["totalResults"] for c in result] == [0, 10, 20, 30, 40, 50]
        assert result[3]["items"] == [{"id": "item-3"}]
        assert "items" not in categories[0]

    async def test_failed_category_gets_empty_items(self) -> None:
        async def get_items(*, q: str, limit: int, total_results: bool) -> dict[str, Any]:
            if "bad" in q:
                raise UpstreamError("down", upstream_status=500)
            return {"items": [{"id": "x"}], "totalResults": 1}

        client = MagicMock()
        client.get_items = get_items

        result = await add_items_to_categories(
            client, [{"id": "good"}, {"id": "bad"}], limit=4
        )

        assert result[0]["items"] == [{"id": "x"}]
        assert result[1] == {"id": "bad", "items": [], "totalResults": 0}

    async def test_category_without_id_gets_empty_items(self) -> None:
        client = MagicMock()
        client.get_items = AsyncMock(
            return_value={"items": [{"id": "x"}], "totalResults": 1}
        )

        result = await add_items_to_categories(
            client, [{"name": "Orphan"}, {"id": "c1"}], limit=4
        )

        assert result[0] == {"name": "Orphan", "items": [], "totalResults": 0}
        assert result[1]["items"] == [{"id": "x"}]
        client.get_items.assert_awaited_once()

    async def test_concurrency_is_bounded(self) -> None:
        in_flight = 0
        peak = 0

        async def get_items(*, q: str, limit: int, total_results: bool) -> dict[str, Any]:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return {"items": [], "totalResults": 0}

        client = MagicMock()
        client.get_items = get_items

        categories = [{"id": f"c{i}"} for i in range(10)]
        result = await add_items_to_categories(client, categories, 4, fanout_limit=3)

        assert len(result) == 10
        assert peak == 3


class TestGalleryService:
    def test_image_url_unchanged_without_auth(
        self, make_settings: Callable[..., Settings]
    ) -> None:
        service = _service(make_settings(), AuthResolver(), MagicMock())
        url = "https://content.example.com/content/published/api/v1.1/assets/a/native"

        assert service.image_url(url) == url

    def test_image_url_routed_through_proxy_with_auth(
        self, make_settings: Callable[..., Settings]
    ) -> None:
        service = _service(
            make_settings(), AuthResolver(static_value="Basic abc"), MagicMock()
        )

        assert service.image_url(
            "https://content.example.com/content/published/api/v1.1/assets/a/native"
        ) == "/api/content/published/api/v1.1/assets/a/native"

    def test_image_url_only_rewrites_leading_server_url(
        self, make_settings: Callable[..., Settings]
    ) -> None:
        service = _service(
            make_settings(), AuthResolver(static_value="Basic abc"), MagicMock()
        )
        url = "https://cdn.example.com/resize?src=https://content.example.com/a.jpg"

        assert service.image_url(url) == url

    def test_source_set(self, make_settings: Callable[..., Settings]) -> None:
        service = _service(make_settings(), AuthResolver(), MagicMock())
        base = "https://content.example.com/content/published/api/v1.1/assets/a"

        urls = service.source_set(_image("a"))

        assert urls["thumbnail"] == f"{base}/Thumbnail/jpg"
        assert urls["jpgSrcset"] == f"{base}/Thumbnail/jpg 150w,"
        assert urls["srcset"] == (
            f"{base}/Thumbnail/webp 150w,{base}/native/a.jpg 1600w"
        )
        assert urls["native"] == f"{base}/native/a.jpg"
        assert urls["width"] == 1600
        assert urls["height"] == 900

    def test_source_set_without_renditions(
        self, make_settings: Callable[..., Settings]
    ) -> None:
        service = _service(make_settings(), AuthResolver(), MagicMock())

        urls = service.source_set({"id": "a", "fields": {}})

        assert urls == {"srcset": "", "jpgSrcset": "", "width": None, "height": None}

    async def test_home_page_data(self, make_settings: Callable[..., Settings]) -> None:
        client = MagicMock()
        client.get_taxonomies = AsyncMock(return_value={"items": [{"id": "t1"}]})
        client.query_taxonomy_categories = AsyncMock(
            return_value={"items": [{"id": "c1", "name": "Nature"}]}
        )
        client.get_items = AsyncMock(
            return_value={"items": [_image("a")], "totalResults": 12}
        )
        service = _service(
            make_settings(), AuthResolver(static_value="Basic abc"), client
        )

        data = await service.get_home_page_data()

        (category,) = data["categories"]
        assert category["name"] == "Nature"
        assert category["totalResults"] == 12
        assert category["items"][0]["renditionUrls"]["native"].startswith("/api/")
        assert client.get_items.await_args.kwargs["limit"] == 4

    async def test_home_page_data_without_taxonomies(
        self, make_settings: Callable[..., Settings]
    ) -> None:
        client = MagicMock()
        client.get_taxonomies = AsyncMock(side_effect=UpstreamError("down"))
        service = _service(make_settings(), AuthResolver(), client)

        assert await service.get_home_page_data() == {"categories": []}

    async def test_image_grid_page_data(
        self, make_settings: Callable[..., Settings]
    ) -> None:
        client = MagicMock()
        client.get_items = AsyncMock(
            return_value={"items": [_image("a"), _image("b")], "totalResults": 2}
        )
        service = _service(make_settings(), AuthResolver(), client)

        data = await service.get_image_grid_page_data("c1")

        assert data is not None
        assert data["totalResults"] == 2
        assert [i["id"] for i in data["items"]] == ["a", "b"]
        assert "renditionUrls" in data["items"][1]
        assert client.get_items.await_args.kwargs["limit"] == 100

    async def test_image_grid_page_data_failure(
        self, make_settings: Callable[..., Settings]
    ) -> None:
        client = MagicMock()
        client.get_items = AsyncMock(side_effect=UpstreamError("down"))
        service = _service(make_settings(), AuthResolver(), client)

        assert await service.get_image_grid_page_data("c1") is None
