"""Content service access: REST client, client factory and page data."""

from content_gallery.content.client import ClientConfig, ClientMode, ContentClient
from content_gallery.content.factory import (
    ClientContext,
    ContentClientFactory,
    make_auth_hook,
)
from content_gallery.content.services import GalleryService


__all__ = [
    "ClientConfig",
    "ClientContext",
    "ClientMode",
    "ContentClient",
    "ContentClientFactory",
    "GalleryService",
    "make_auth_hook",
]
