"""Content Gallery - image gallery backend for a remote content service."""

from ._version import __version__


__all__ = ["__version__"]
