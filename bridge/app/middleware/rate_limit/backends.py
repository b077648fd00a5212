"""Rate limit record stores.

The limiter talks to its per-identity state only through ``RateLimitStore``.
``InMemoryRateLimitStore`` is the single-process implementation; state is
lost on restart.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import List, Optional

from bridge.app.core.logging import get_logger
from bridge.app.middleware.rate_limit.models import RateRecord

logger = get_logger(__name__)


class RateLimitStore(ABC):
    """Abstract identity -> RateRecord store.

    Implementations are not required to be safe for concurrent use; the
    limiter serializes every access.
    """

    @abstractmethod
    def get(self, identity: str) -> Optional[RateRecord]:
        pass

    @abstractmethod
    def upsert(self, identity: str, record: RateRecord) -> None:
        pass

    @abstractmethod
    def remove(self, identity: str) -> None:
        pass

    @abstractmethod
    def expired(self, now: float) -> List[str]:
        """Identities whose window has passed at ``now``."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class InMemoryRateLimitStore(RateLimitStore):
    """In-memory record store with a hard capacity.

    Memory optimization:
    - Uses OrderedDict for LRU ordering
    - Inserting past ``max_entries`` evicts the least recently touched records
    """

    DEFAULT_MAX_ENTRIES = 100_000

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._records: OrderedDict[str, RateRecord] = OrderedDict()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, identity: str) -> Optional[RateRecord]:
        record = self._records.get(identity)
        if record is not None:
            self._records.move_to_end(identity)
        return record

    def upsert(self, identity: str, record: RateRecord) -> None:
        self._records[identity] = record
        self._records.move_to_end(identity)
        self._enforce_capacity()

    def remove(self, identity: str) -> None:
        self._records.pop(identity, None)

    def expired(self, now: float) -> List[str]:
        return [
            identity for identity, record in self._records.items()
            if record.is_expired(now)
        ]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    def _enforce_capacity(self) -> None:
        evicted = 0
        while len(self._records) > self._max_entries:
            self._records.popitem(last=False)
            evicted += 1
        if evicted:
            logger.debug(f"Evicted {evicted} rate limit record(s) at capacity {self._max_entries}")
