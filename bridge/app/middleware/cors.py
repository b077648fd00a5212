"""CORS middleware for the proxy.

Answers preflight requests directly and stamps the computed CORS headers
on every other response, overwriting any the backend sent.
"""

from typing import Sequence

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from bridge.app.services.cors_policy import compute_cors_headers, parse_allowed_origins


class CorsMiddleware(BaseHTTPMiddleware):
    """Outermost middleware applying the configured CORS policy.

    Starlette's CORSMiddleware is not used because the allow decision has
    a localhost-pattern rule and the static headers must be sent even for
    disallowed origins.
    """

    def __init__(self, app, allowed_origins: str | Sequence[str] = ()):
        super().__init__(app)
        self.allowed_origins = parse_allowed_origins(allowed_origins)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        cors_headers = compute_cors_headers(request.headers.get("origin"), self.allowed_origins)

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=cors_headers)

        response = await call_next(request)
        for name, value in cors_headers.items():
            response.headers[name] = value
        return response
