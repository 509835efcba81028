"""Request ID middleware for generating and tracking request IDs."""

import shortuuid
import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from content_gallery.core.request_context import RequestContext


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Generates a request ID, binds it to the log context and echoes it back."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or shortuuid.uuid()

        request.state.request_id = request_id
        request.state.context = RequestContext(
            request_id=request_id,
            method=request.method,
            path=str(request.url.path),
        )

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["x-request-id"] = request_id
        return response
