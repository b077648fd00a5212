"""Time sources for the proxy.

The rate limiter reads time through a ``Clock`` so tests can drive window
expiry deterministically with ``ManualClock``.
"""

import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """Supplies the current time in seconds."""

    @abstractmethod
    def now(self) -> float:
        pass


class SystemClock(Clock):
    """Wall clock in Unix epoch seconds."""

    def now(self) -> float:
        return time.time()


class ManualClock(Clock):
    """Clock that only moves when told to.

    Example:
        >>> clock = ManualClock(start=1000.0)
        >>> clock.advance(61)
        >>> clock.now()
        1061.0
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += seconds

    def set(self, value: float) -> None:
        self._now = float(value)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
