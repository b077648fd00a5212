"""Catch-all route relaying requests to the backend.

Every method except OPTIONS is forwarded; OPTIONS never reaches the router
because the CORS middleware answers it.
"""

from fastapi import APIRouter, Request, Response

from bridge.app.api.routing import add_any_method_route
from bridge.app.core.logging import get_log_context, get_logger
from bridge.app.services.forwarder import UpstreamForwarder

logger = get_logger(__name__)

router = APIRouter(tags=["proxy"])


def get_forwarder(request: Request) -> UpstreamForwarder:
    """Forwarder created in the application lifespan."""
    return request.app.state.forwarder


async def proxy(request: Request) -> Response:
    """Forward the request and relay the backend's response.

    Raises:
        ForwardError: Converted to a 500 response by the application handler.
    """
    upstream = await get_forwarder(request).forward(request)

    logger.debug(
        f"Backend answered {upstream.status_code} {upstream.reason_phrase}",
        extra=get_log_context(
            request_id=getattr(request.state, "request_id", None),
            status_code=upstream.status_code,
        ),
    )

    response = Response(content=upstream.body, status_code=upstream.status_code)
    # Backend values win over generated ones (HEAD keeps its Content-Length);
    # raw_headers keeps repeated headers such as Set-Cookie intact
    relayed = {name for name, _ in upstream.headers}
    response.raw_headers[:] = [
        (name, value) for name, value in response.raw_headers if name not in relayed
    ]
    response.raw_headers.extend(upstream.headers)
    return response


add_any_method_route(router, "/{path:path}", proxy, name="proxy")
