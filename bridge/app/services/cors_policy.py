"""CORS policy evaluation.

Pure functions computing the cross-origin response headers for a request
origin against the configured allow-list. The allow-list is a
comma-separated list of literal origins where ``*`` allows any origin and
any entry containing ``localhost`` additionally allows every
``http://[<sub>.]localhost:<port>`` origin.
"""

import re
from typing import Optional, Sequence, Union

ALLOW_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
ALLOW_HEADERS = (
    "Content-Type, Authorization, apikey, x-client-info, Prefer, Range, "
    "Accept-Profile, Content-Profile"
)
EXPOSE_HEADERS = "Content-Range, Range"
MAX_AGE = "86400"

WILDCARD = "*"
LOCALHOST_PATTERN = re.compile(r"^http://(\w+\.)?localhost:\d+$")

AllowList = Union[str, Sequence[str]]


def parse_allowed_origins(raw: Optional[AllowList]) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        parts = raw.split(",")
    else:
        parts = list(raw)
    items = [p.strip() for p in parts]
    return [p for p in items if p]


def is_origin_allowed(origin: Optional[str], allowed_origins: AllowList) -> bool:
    if not origin:
        return False
    allowed = parse_allowed_origins(allowed_origins)
    if origin in allowed or WILDCARD in allowed:
        return True
    return bool(LOCALHOST_PATTERN.match(origin)) and any(
        "localhost" in entry for entry in allowed
    )


def compute_cors_headers(origin: Optional[str], allowed_origins: AllowList) -> dict[str, str]:
    """Compute the CORS headers for a response.

    Method, header, expose and max-age headers are always present. The
    origin is echoed back together with ``Access-Control-Allow-Credentials``
    only when it is allowed.

    Example:
        >>> headers = compute_cors_headers("https://app.example.com", "https://app.example.com")
        >>> headers["Access-Control-Allow-Origin"]
        'https://app.example.com'
    """
    headers = {
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Expose-Headers": EXPOSE_HEADERS,
        "Access-Control-Max-Age": MAX_AGE,
    }
    if is_origin_allowed(origin, allowed_origins):
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Credentials"] = "true"
    return headers
