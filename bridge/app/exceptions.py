"""Custom exceptions for the proxy application."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bridge.app.middleware.rate_limit.models import RateLimitResult


RATE_LIMIT_MESSAGE = "Rate limit exceeded. Try again later."


class ProxyException(Exception):
    """Base class for proxy exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500

    def __init__(self, message: str = "Proxy error"):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        return {"error": self.message}


class RateLimitExceededError(ProxyException):
    """Raised when a client has used up its requests for the current window.

    Recoverable by retrying after the window resets.
    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429

    def __init__(self, result: "RateLimitResult | None" = None, message: str = RATE_LIMIT_MESSAGE):
        self.result = result
        super().__init__(message)

    def headers(self) -> dict[str, str]:
        """Rate limit headers for the rejection response."""
        if self.result is None:
            return {}
        return {
            "X-RateLimit-Limit": str(self.result.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(self.result.reset_at)),
            "Retry-After": str(self.result.retry_after or 0),
        }


class ForwardError(ProxyException):
    """Raised when the backend could not be reached or answered unusably.

    ``kind`` is one of ``"timeout"``, ``"transport"`` or ``"config"``.
    Never retried by the proxy. Maps to HTTP 500.
    """
    status_code = 500

    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    CONFIG = "config"

    def __init__(self, message: str, kind: str = TRANSPORT):
        self.kind = kind
        super().__init__(message)

    def to_response(self) -> dict:
        return {"error": "Proxy error", "message": self.message}
