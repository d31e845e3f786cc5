"""In-memory response cache with a fixed TTL and lazy eviction."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

TTL_FLIGHT_OFFERS = 5 * 60  # 5 minutes


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float
    expires_at: float


class ResponseCache:
    """Key/value store whose entries expire a fixed time after insertion.

    Expired entries are evicted when looked up; there is no background sweep
    and no capacity bound.
    """

    def __init__(self, ttl: float = TTL_FLIGHT_OFFERS, clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss or an expired entry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            logger.debug(f"Cache entry expired: {key}")
            return None
        return entry.value

    def put(self, key: str, value: Any) -> None:
        now = self._clock()
        self._entries[key] = CacheEntry(value=value, inserted_at=now, expires_at=now + self.ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
