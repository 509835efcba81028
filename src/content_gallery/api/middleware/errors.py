"""Error handling for the content gallery API.

Renders every GalleryError subclass from its built-in error_type and
status_code as ``{"error": {"type": ..., "message": ...}}``.
"""

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
from structlog import get_logger

from content_gallery.exceptions import ErrorType, GalleryError, MethodNotAllowedError


logger = get_logger(__name__)


def _error_response(
    status_code: int,
    error_type: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"type": error_type, "message": message}},
        headers=headers,
    )


def _request_fields(request: Request) -> dict[str, Any]:
    return {"method": request.method, "path": request.url.path}


def setup_error_handlers(app: FastAPI) -> None:
    """Register the JSON error handlers on ``app``."""

    @app.exception_handler(GalleryError)
    async def gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
        error_type = str(exc.error_type)
        fields = {
            **_request_fields(request),
            "error_type": error_type,
            "status_code": exc.status_code,
            **exc.details,
        }

        headers = None
        if isinstance(exc, MethodNotAllowedError):
            headers = {"Allow": ", ".join(exc.allowed)}
            logger.info("request_rejected", reason=exc.message, **fields)
        else:
            logger.error("request_failed", reason=exc.message, **fields)

        return _error_response(exc.status_code, error_type, exc.message, headers)

    @app.exception_handler(HTTPException)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        log = logger.debug if exc.status_code < 500 else logger.error
        log(
            "http_exception",
            status_code=exc.status_code,
            detail=exc.detail,
            **_request_fields(request),
        )
        return _error_response(
            exc.status_code, "http_error", str(exc.detail), exc.headers
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            error=str(exc),
            exc_info=True,
            **_request_fields(request),
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorType.INTERNAL_SERVER.value,
            "An internal server error occurred",
        )
