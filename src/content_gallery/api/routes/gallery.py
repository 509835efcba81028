"""Page data for the gallery views."""

from typing import Any

from fastapi import APIRouter

from content_gallery.api.dependencies import ClientFactoryDep, GalleryServiceDep
from content_gallery.content.factory import ClientContext
from content_gallery.exceptions import NotFoundError


router = APIRouter(tags=["gallery"])


@router.get("/home")
async def home_page_data(gallery: GalleryServiceDep) -> dict[str, Any]:
    """Every category with its first few image items and rendition URLs."""
    return await gallery.get_home_page_data()


@router.get("/categories/{category_id}")
async def image_grid_page_data(
    category_id: str, gallery: GalleryServiceDep
) -> dict[str, Any]:
    """All image items of one category with rendition URLs."""
    data = await gallery.get_image_grid_page_data(category_id)
    if data is None:
        raise NotFoundError(f"Items for category {category_id} are unavailable")
    return data


@router.get("/client-config")
async def browser_client_config(factory: ClientFactoryDep) -> dict[str, Any]:
    """Connection details for browser-side content clients.

    When authentication is required these point at this application's proxy;
    credentials are never part of the payload.
    """
    config = factory.get_client(ClientContext.BROWSER).config
    return {
        "serverUrl": config.server_url,
        "apiVersion": config.api_version,
        "channelToken": config.channel_token,
        "mode": config.mode.value,
    }
