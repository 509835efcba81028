"""Access log: one structured line per request."""

import asyncio
import time

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


logger = structlog.get_logger(__name__)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every request.

    The request id comes from the structlog context bound by
    RequestIDMiddleware; proxy requests add their upstream URL through the
    request context metadata.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        response: Response | None = None
        failure: str | None = None

        try:
            response = await call_next(request)
        except (Exception, asyncio.CancelledError) as e:
            failure = str(e) or type(e).__name__
            raise
        finally:
            fields = {
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query or None,
                "client_ip": request.client.host if request.client else None,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            }
            context = getattr(request.state, "context", None)
            if context is not None:
                fields.update(context.metadata)

            if response is None:
                logger.error("request_error", error=failure, **fields)
            else:
                logger.info(
                    "request_complete",
                    status_code=response.status_code,
                    content_type=response.headers.get("content-type"),
                    **fields,
                )

        return response
