"""Per-client rate limiting for proxied requests.

Fixed-window counters keyed by client identity. Each identity's window
starts at its own first request (or first request after expiry), not at a
wall-clock boundary, and up to ``limit`` requests may land back to back at
the start of a window.
"""

import asyncio
import math
from typing import Iterable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from bridge.app.core.clock import Clock, SystemClock
from bridge.app.core.logging import get_log_context, get_logger
from bridge.app.exceptions import RateLimitExceededError
from bridge.app.services.client_identity import get_client_identity

# Re-export models
from bridge.app.middleware.rate_limit.models import RateLimitResult, RateRecord

# Re-export backends
from bridge.app.middleware.rate_limit.backends import (
    InMemoryRateLimitStore,
    RateLimitStore,
)

logger = get_logger(__name__)

__all__ = [
    # Models
    "RateRecord",
    "RateLimitResult",
    # Backends
    "RateLimitStore",
    "InMemoryRateLimitStore",
    # Main classes
    "FixedWindowRateLimiter",
    "RateLimitMiddleware",
]


class FixedWindowRateLimiter:
    """Fixed-window admission control keyed by client identity.

    One instance is constructed per process at startup and handed to the
    middleware and the sweeper explicitly.

    The look-up, check and increment for an identity run as one unit under
    an ``asyncio.Lock``, so two simultaneous requests at the limit boundary
    can never both be admitted. The lock is never held across I/O.
    """

    DEFAULT_WINDOW_SECONDS = 60.0

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Optional[Clock] = None,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
    ):
        """Initialize rate limiter.

        Args:
            store: Record store (defaults to an in-memory store)
            clock: Time source (defaults to the system clock)
            window_seconds: Length of each identity's window
        """
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock or SystemClock()
        self.window_seconds = window_seconds
        self._lock = asyncio.Lock()

    @property
    def store(self) -> RateLimitStore:
        return self._store

    async def admit(self, identity: str, limit: int, now: Optional[float] = None) -> bool:
        """Return True if the request should proceed."""
        result = await self.check(identity, limit, now)
        return result.allowed

    async def check(
        self,
        identity: str,
        limit: int,
        now: Optional[float] = None,
    ) -> RateLimitResult:
        """Decide admission for ``identity`` and report the window state.

        Args:
            identity: Client identity key
            limit: Requests admitted per window; ``<= 0`` rejects everything
            now: Current time (defaults to the limiter's clock)

        Returns:
            RateLimitResult with allowed status and metadata
        """
        async with self._lock:
            if now is None:
                now = self._clock.now()

            record = self._store.get(identity)

            # Lazy eviction of an expired window
            if record is not None and record.is_expired(now):
                self._store.remove(identity)
                record = None

            if limit <= 0:
                return RateLimitResult(
                    allowed=False,
                    limit=0,
                    remaining=0,
                    reset_at=now + self.window_seconds,
                    retry_after=math.ceil(self.window_seconds),
                )

            # First request of a new window always admits
            if record is None:
                record = RateRecord(count=1, reset_at=now + self.window_seconds)
                self._store.upsert(identity, record)
                return RateLimitResult(
                    allowed=True,
                    limit=limit,
                    remaining=limit - 1,
                    reset_at=record.reset_at,
                )

            if record.count >= limit:
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_at=record.reset_at,
                    retry_after=max(1, math.ceil(record.reset_at - now)),
                )

            record.count += 1
            self._store.upsert(identity, record)
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - record.count,
                reset_at=record.reset_at,
            )

    async def cleanup(self, now: Optional[float] = None) -> int:
        """Remove every expired record.

        Returns:
            Number of records removed
        """
        async with self._lock:
            if now is None:
                now = self._clock.now()
            expired = self._store.expired(now)
            for identity in expired:
                self._store.remove(identity)
            return len(expired)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce per-client rate limits on proxied requests.

    Preflight requests and exempt paths (the health check) pass through
    without consuming a slot.
    """

    def __init__(
        self,
        app,
        limiter: FixedWindowRateLimiter,
        limit: int,
        identity_header: str = "CF-Connecting-IP",
        exempt_paths: Iterable[str] = ("/health",),
    ):
        super().__init__(app)
        self.limiter = limiter
        self.limit = limit
        self.identity_header = identity_header
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with rate limiting."""
        if request.method == "OPTIONS" or request.url.path in self.exempt_paths:
            return await call_next(request)

        identity = get_client_identity(request, self.identity_header)
        request.state.client_id = identity
        result = await self.limiter.check(identity, self.limit)

        if not result.allowed:
            exc = RateLimitExceededError(result)
            logger.warning(
                "Rate limit exceeded",
                extra=get_log_context(
                    request_id=getattr(request.state, "request_id", None),
                    client_id=identity,
                    path=request.url.path,
                    method=request.method,
                    status_code=exc.status_code,
                ),
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response(),
                headers=exc.headers(),
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Reset"] = str(int(result.reset_at))

        return response
