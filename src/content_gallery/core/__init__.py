"""Core utilities for the content gallery."""

from content_gallery.core.async_utils import gather_with_concurrency
from content_gallery.core.logging import setup_logging
from content_gallery.core.request_context import RequestContext


__all__ = [
    "RequestContext",
    "gather_with_concurrency",
    "setup_logging",
]
