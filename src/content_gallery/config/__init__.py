"""Configuration module for the content gallery."""

from content_gallery.exceptions import ConfigurationError

from .sections import (
    GallerySettings,
    NonGetPolicy,
    ProxySettings,
    ServerSettings,
    UpstreamSettings,
)
from .settings import Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "ServerSettings",
    "ProxySettings",
    "UpstreamSettings",
    "GallerySettings",
    "NonGetPolicy",
    "ConfigurationError",
]
