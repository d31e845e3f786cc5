"""Calendar price browsing — one rate-limited search per day, reported as each day resolves."""

import asyncio
import calendar
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import date
from typing import Protocol

from app.schemas.flight import CalendarDayPrice, DayStatus, Offer
from app.schemas.search import SearchCriteria
from app.services.exceptions import FlightProviderError, RateLimitError
from app.services.rate_limiter import FixedIntervalGate

logger = logging.getLogger(__name__)

DayOutcome = list[Offer] | Exception
DayCallback = Callable[[CalendarDayPrice, DayOutcome], Awaitable[None] | None]


class OfferSearcher(Protocol):
    async def search(self, criteria: SearchCriteria) -> list[Offer]: ...


class CancellationToken:
    """Handle for abandoning a scheduler run (e.g. the user left the page)."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


def month_days(year: int, month: int) -> list[date]:
    """All days of a calendar month."""
    _, last = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, last + 1)]


class RateLimitedScheduler:
    """Drives one search per calendar day, strictly one at a time.

    The gate is the only concurrency control. Schedulers built over the same
    gate and lock space their calls against each other, so concurrent runs
    on one credential stay under the provider limit. A failure on one day is
    recorded on that day and the run moves on; after a rate limit the gate
    stretches the delay before the next call.
    """

    def __init__(
        self,
        searcher: OfferSearcher,
        gate: FixedIntervalGate,
        *,
        lock: asyncio.Lock | None = None,
        today: Callable[[], date] = date.today,
    ):
        self._searcher = searcher
        self._gate = gate
        # Held from the gate wait until release; runs sharing a gate share this lock.
        self._lock = lock or asyncio.Lock()
        self._today = today

    def prioritize(self, days: Iterable[date], today: date | None = None) -> list[date]:
        """Order days closest to today first; ties keep input order."""
        today = today or self._today()
        return sorted(days, key=lambda d: abs((d - today).days))

    async def schedule_daily_fetch(
        self,
        days: Iterable[date],
        criteria: SearchCriteria,
        on_day_resolved: DayCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[CalendarDayPrice]:
        """Resolve every day, returning the per-day cells in input order.

        Past days are reported unavailable without a network call. Once the
        cancel token fires no further searches are issued and no further
        cells are written or reported; unresolved cells stay pending.
        """
        token = cancel_token or CancellationToken()
        today = self._today()
        cells: dict[date, CalendarDayPrice] = {}
        for day in days:
            cells.setdefault(day, CalendarDayPrice(date=day))

        past = [d for d in cells if d < today]
        upcoming = self.prioritize([d for d in cells if d >= today], today)

        for day in past:
            if token.cancelled:
                return list(cells.values())
            cell = cells[day]
            cell.mark_unavailable()
            await self._notify(on_day_resolved, cell, [])

        for day in upcoming:
            if token.cancelled:
                break
            async with self._lock:
                if token.cancelled:
                    break
                await self._gate.wait()
                if token.cancelled:
                    break
                outcome = await self._fetch_day(criteria.for_day(day))

            if token.cancelled:
                logger.info(f"Calendar run cancelled, dropping result for {day}")
                break

            cell = cells[day]
            if isinstance(outcome, Exception):
                cell.fail(outcome)
            else:
                cell.resolve(outcome)
            await self._notify(on_day_resolved, cell, outcome)

        resolved = sum(1 for c in cells.values() if c.status != DayStatus.PENDING)
        logger.info(
            f"Calendar run {criteria.origin}->{criteria.destination}: "
            f"{resolved}/{len(cells)} days resolved{' (cancelled)' if token.cancelled else ''}"
        )
        return list(cells.values())

    async def _fetch_day(self, criteria: SearchCriteria) -> DayOutcome:
        try:
            offers = await self._searcher.search(criteria)
        except RateLimitError as e:
            self._gate.release(rate_limited=True, retry_after=e.retry_after)
            logger.warning(f"Rate limited on {criteria.departure_date}, backing off")
            return e
        except FlightProviderError as e:
            self._gate.release()
            logger.warning(f"Calendar fetch failed for {criteria.departure_date}: {e}")
            return e
        except Exception as e:
            self._gate.release()
            logger.exception(f"Unexpected error fetching {criteria.departure_date}")
            return e
        self._gate.release()
        return offers

    @staticmethod
    async def _notify(callback: DayCallback | None, cell: CalendarDayPrice, outcome: DayOutcome) -> None:
        if callback is None:
            return
        result = callback(cell, outcome)
        if inspect.isawaitable(result):
            await result
