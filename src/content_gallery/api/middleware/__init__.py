"""API middleware for the content gallery server."""

from content_gallery.api.middleware.errors import setup_error_handlers
from content_gallery.api.middleware.logging import AccessLogMiddleware
from content_gallery.api.middleware.request_id import RequestIDMiddleware


__all__ = [
    "AccessLogMiddleware",
    "RequestIDMiddleware",
    "setup_error_handlers",
]
