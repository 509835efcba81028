"""API routes for the content gallery server."""

from content_gallery.api.routes.gallery import router as gallery_router
from content_gallery.api.routes.health import router as health_router
from content_gallery.api.routes.proxy import router as proxy_router


__all__ = [
    "gallery_router",
    "health_router",
    "proxy_router",
]
