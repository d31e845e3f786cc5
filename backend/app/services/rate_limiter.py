"""Fixed-interval gate: spaces out provider calls and stretches the gap after throttling."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class FixedIntervalGate:
    """Enforces a minimum gap between the end of one call and the start of the next.

    After a rate-limited call the next gap becomes ``interval * backoff_multiplier``;
    consecutive rate limits compound up to ``max_delay``. A successful call resets
    the gap to ``interval``. A provider Retry-After hint longer than the computed
    gap wins, still bounded by ``max_delay``.
    """

    def __init__(
        self,
        interval: float = 2.0,
        backoff_multiplier: float = 2.5,
        max_delay: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval < 0:
            raise ValueError("interval must not be negative")
        if backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        self.interval = interval
        self.backoff_multiplier = backoff_multiplier
        self.max_delay = max(max_delay, interval)
        self._clock = clock
        self._sleep = sleep
        self._last_release: float | None = None
        self._next_delay = interval
        self._penalties = 0

    @property
    def next_delay(self) -> float:
        """Gap required between the last release and the next call."""
        return self._next_delay

    async def wait(self) -> float:
        """Sleep until the next call may start. Returns the seconds slept."""
        if self._last_release is None:
            return 0.0
        remaining = self._last_release + self._next_delay - self._clock()
        if remaining <= 0:
            return 0.0
        await self._sleep(remaining)
        return remaining

    def release(self, *, rate_limited: bool = False, retry_after: float | None = None) -> None:
        """Record that a call finished, and whether the provider throttled it."""
        self._last_release = self._clock()
        if not rate_limited:
            self._penalties = 0
            self._next_delay = self.interval
            return

        self._penalties += 1
        delay = self.interval * self.backoff_multiplier ** self._penalties
        if retry_after:
            delay = max(delay, retry_after)
        self._next_delay = min(delay, self.max_delay)
        logger.warning(f"Rate limited, next call delayed {self._next_delay:.1f}s")

    def reset(self) -> None:
        self._last_release = None
        self._penalties = 0
        self._next_delay = self.interval
