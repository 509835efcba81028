"""Authenticated reverse proxy to the content service."""

from content_gallery.proxy.handler import ProxyHandler


__all__ = ["ProxyHandler"]
