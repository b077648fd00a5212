"""Middleware package for the proxy."""

from bridge.app.middleware.cors import CorsMiddleware
from bridge.app.middleware.rate_limit import RateLimitMiddleware
from bridge.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "CorsMiddleware",
    "RateLimitMiddleware",
    "RequestIdMiddleware",
    "get_request_id",
]
