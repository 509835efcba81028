"""Exception hierarchy for the content gallery.

All exceptions use proper exception chaining with the `from` keyword.
Error types use StrEnum for type safety and autocompletion.
"""

from enum import StrEnum
from typing import Any

from starlette import status


class ErrorType(StrEnum):
    """Error type codes for API responses."""

    INVALID_REQUEST = "invalid_request_error"
    AUTHENTICATION = "authentication_error"
    NOT_FOUND = "not_found_error"
    METHOD_NOT_ALLOWED = "method_not_allowed_error"
    UPSTREAM = "upstream_error"
    CONFIGURATION = "configuration_error"
    INTERNAL_SERVER = "internal_server_error"


# ============================================================================
# Base Exceptions
# ============================================================================


class GalleryError(Exception):
    """Base exception for all content gallery errors.

    Supports HTTP status codes and structured error details so that the
    API layer can render any subclass without special casing.
    """

    def __init__(
        self,
        message: str,
        *,
        error_type: ErrorType | str = ErrorType.INTERNAL_SERVER,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if isinstance(error_type, str) and not isinstance(error_type, ErrorType):
            try:
                self.error_type = ErrorType(error_type)
            except ValueError:
                self.error_type = error_type  # type: ignore[assignment]
        else:
            self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}


# ============================================================================
# Authentication
# ============================================================================


class AuthError(GalleryError):
    """Fetching or parsing an OAuth access token failed.

    The failure happens between this server and the identity service, so it
    is reported to callers as a bad gateway rather than a 401.
    """

    def __init__(
        self,
        message: str = "Failed to obtain access token",
        *,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if status_code is not None:
            details["upstream_status"] = status_code
        super().__init__(
            message,
            error_type=ErrorType.AUTHENTICATION,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details,
        )
        self.upstream_status = status_code
        self.response_text = response_text


# ============================================================================
# Upstream content service
# ============================================================================


class UpstreamError(GalleryError):
    """Content service returned a non-2xx response or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        url: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        if url:
            details["url"] = url
        super().__init__(
            message,
            error_type=ErrorType.UPSTREAM,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details,
        )
        self.upstream_status = upstream_status
        self.url = url


class NotFoundError(GalleryError):
    """Not found error (404)."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(
            message,
            error_type=ErrorType.NOT_FOUND,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class MethodNotAllowedError(GalleryError):
    """Method not allowed on the proxy endpoint (405)."""

    def __init__(self, method: str, allowed: tuple[str, ...] = ("GET",)) -> None:
        super().__init__(
            f"Method {method} is not supported by the content proxy",
            error_type=ErrorType.METHOD_NOT_ALLOWED,
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            details={"allowed": list(allowed)},
        )
        self.allowed = allowed


# ============================================================================
# Configuration
# ============================================================================


class ConfigurationError(GalleryError):
    """Raised when configuration loading or validation fails."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            error_type=ErrorType.CONFIGURATION,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )


__all__ = [
    "ErrorType",
    "GalleryError",
    "AuthError",
    "UpstreamError",
    "NotFoundError",
    "MethodNotAllowedError",
    "ConfigurationError",
]
