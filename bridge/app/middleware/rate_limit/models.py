"""Rate limiting data models.

This module contains dataclasses for rate limit state and results.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RateRecord:
    """Per-identity fixed-window state.

    Attributes:
        count: Requests admitted in the current window
        reset_at: Clock time after which the window is expired
    """
    count: int
    reset_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.reset_at


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None
