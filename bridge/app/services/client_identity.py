"""Client identity derivation for rate limiting."""

from starlette.requests import Request

UNKNOWN_CLIENT = "unknown"


def get_client_identity(request: Request, header_name: str = "CF-Connecting-IP") -> str:
    """Return the rate-limit key for a request.

    The value of the trusted edge header, trimmed. Requests without it all
    share the ``"unknown"`` bucket.
    """
    value = request.headers.get(header_name, "").strip()
    return value or UNKNOWN_CLIENT
