"""API layer for the content gallery server."""

from content_gallery.api.app import create_app, get_app


__all__ = ["create_app", "get_app"]
