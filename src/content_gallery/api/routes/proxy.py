"""Proxy endpoint forwarding browser requests to the content service."""

from fastapi import APIRouter, Request, Response

from content_gallery.api.dependencies import ProxyHandlerDep, SettingsDep
from content_gallery.config.sections import NonGetPolicy
from content_gallery.exceptions import MethodNotAllowedError


router = APIRouter(tags=["proxy"])

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def _wait_for_disconnect(request: Request) -> None:
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


@router.api_route(
    "/{upstream_path:path}",
    methods=PROXY_METHODS,
    response_model=None,
    include_in_schema=False,
)
async def proxy_content(
    request: Request,
    upstream_path: str,
    handler: ProxyHandlerDep,
    settings: SettingsDep,
) -> Response:
    """Relay a GET request to the content service with server-side credentials.

    Requests with other methods are dropped by the handler. By default they
    are answered with 405; the ``drop`` policy keeps the legacy behaviour of
    leaving the connection open without a response.
    """
    response = await handler.handle(request)
    if response is not None:
        return response

    if settings.proxy.non_get_policy is NonGetPolicy.DROP:
        await _wait_for_disconnect(request)
        # The client is gone; nothing sent here reaches it
        return Response(status_code=204)

    raise MethodNotAllowedError(request.method)
