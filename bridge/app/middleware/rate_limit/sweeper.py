"""Background eviction of expired rate limit records.

Lazy eviction only reclaims records for identities that come back; the
sweeper reclaims the ones that never do.
"""

import asyncio
from typing import Optional, TYPE_CHECKING

from bridge.app.core.logging import get_logger

if TYPE_CHECKING:
    from bridge.app.middleware.rate_limit import FixedWindowRateLimiter

logger = get_logger(__name__)


class RateLimitSweeper:
    """Periodically removes expired records from a limiter's store.

    Usage:
        sweeper = RateLimitSweeper(limiter, interval_seconds=60)
        await sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(self, limiter: "FixedWindowRateLimiter", interval_seconds: float = 60.0):
        """Initialize the sweeper.

        Args:
            limiter: Limiter whose expired records are removed
            interval_seconds: Time between sweeps; ``<= 0`` disables sweeping
        """
        self._limiter = limiter
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None

    async def sweep_once(self) -> int:
        removed = await self._limiter.cleanup()
        if removed:
            logger.debug(f"Swept {removed} expired rate limit record(s)")
        return removed

    async def start(self) -> None:
        if self._task is not None:
            logger.debug("Rate limit sweeper already running")
            return
        if self._interval <= 0:
            logger.info("Rate limit sweeper disabled")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started rate limit sweeper (interval: {self._interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._stop_event.set()

        try:
            await asyncio.wait_for(self._task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Rate limit sweeper did not stop gracefully, cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            logger.info("Stopped rate limit sweeper")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                # Interval elapsed
                pass
            else:
                break

            try:
                await self.sweep_once()
            except Exception as e:
                logger.error(f"Error during rate limit sweep: {e}")
