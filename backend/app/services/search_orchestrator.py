"""Search orchestrator — runs one-way, round-trip and calendar searches end to end."""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import date

from app.schemas.flight import CalendarDayPrice, Itinerary
from app.schemas.search import FlightSearchRequest, SearchCriteria
from app.services.amadeus_client import AmadeusClient
from app.services.calendar_scheduler import (
    CancellationToken,
    DayCallback,
    RateLimitedScheduler,
    month_days,
)
from app.services.itinerary_composer import cap_offers, compose, one_way
from app.services.rate_limiter import FixedIntervalGate
from app.services.ranking_tagger import BEST_OVERALL_FRACTION, tag_itineraries

logger = logging.getLogger(__name__)


class FlightSearchService:
    """Coordinates the provider client, composer and tagger for each search type."""

    def __init__(
        self,
        client: AmadeusClient,
        *,
        request_currency: str = "EUR",
        result_cap: int = 20,
        compose_cap_per_leg: int = 10,
        best_overall_fraction: float = BEST_OVERALL_FRACTION,
        gate_factory: Callable[[], FixedIntervalGate] = FixedIntervalGate,
        today: Callable[[], date] = date.today,
    ):
        self.client = client
        self.request_currency = request_currency
        self.result_cap = result_cap
        self.compose_cap_per_leg = compose_cap_per_leg
        self.best_overall_fraction = best_overall_fraction
        # One gate per provider credential, shared by every calendar run.
        self.calendar_gate = gate_factory()
        self._calendar_lock = asyncio.Lock()
        self._today = today

    def build_criteria(self, req: FlightSearchRequest) -> SearchCriteria:
        """Apply the fixed request currency and result cap to a user request."""
        return SearchCriteria(
            origin=req.origin,
            destination=req.destination,
            departure_date=req.departure_date,
            return_date=req.return_date,
            adults=req.adults,
            children=req.children,
            infants=req.infants,
            travel_class=req.travel_class,
            non_stop=req.non_stop,
            currency=self.request_currency,
            max_results=self.result_cap,
        )

    async def search(self, criteria: SearchCriteria) -> list[Itinerary]:
        if criteria.is_round_trip:
            return await self.search_round_trip(criteria)
        return await self.search_one_way(criteria)

    async def search_one_way(self, criteria: SearchCriteria) -> list[Itinerary]:
        offers = await self.client.search(criteria)
        return tag_itineraries(one_way(offers), self.best_overall_fraction)

    async def search_round_trip(self, criteria: SearchCriteria) -> list[Itinerary]:
        """
        Search each direction separately and pair them.

        Each side is pre-ranked and capped at `compose_cap_per_leg` before
        composing, so at most cap x cap itineraries are built.
        """
        start_time = time.monotonic()
        outbound, inbound = await asyncio.gather(
            self.client.search(criteria.outbound_leg()),
            self.client.search(criteria.return_leg()),
        )

        outbound = cap_offers(outbound, self.compose_cap_per_leg)
        inbound = cap_offers(inbound, self.compose_cap_per_leg)
        itineraries = tag_itineraries(compose(outbound, inbound), self.best_overall_fraction)

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Round trip {criteria.origin}<->{criteria.destination}: "
            f"{len(outbound)}x{len(inbound)} -> {len(itineraries)} itineraries in {elapsed_ms}ms"
        )
        return itineraries

    def scheduler(self) -> RateLimitedScheduler:
        """A scheduler for one calendar run, spaced against every other run."""
        return RateLimitedScheduler(
            self.client,
            self.calendar_gate,
            lock=self._calendar_lock,
            today=self._today,
        )

    async def browse_month(
        self,
        criteria: SearchCriteria,
        year: int,
        month: int,
        on_day_resolved: DayCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[CalendarDayPrice]:
        """Lowest one-way price per day of a month, streamed through `on_day_resolved`."""
        return await self.scheduler().schedule_daily_fetch(
            month_days(year, month),
            criteria,
            on_day_resolved,
            cancel_token,
        )
