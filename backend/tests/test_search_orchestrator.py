import asyncio
from datetime import date

import httpx
import pytest

from factories import make_offer, raw_offer, raw_segment, search_response

from app.dependencies import build_services
from app.schemas.flight import DayStatus
from app.schemas.search import FlightSearchRequest, SearchCriteria
from app.services.amadeus_client import SEARCH_PATH
from app.services.exceptions import RateLimitError
from app.services.ranking_tagger import TAG_CHEAPEST, TAG_SAME_AIRLINE
from app.services.rate_limiter import FixedIntervalGate
from app.services.search_orchestrator import FlightSearchService


def leg_offer(offer_id, total, carrier, dep, arr, dep_at):
    return raw_offer(offer_id, total=total, itineraries=[{
        "duration": "PT7H",
        "segments": [raw_segment(carrier, "1", dep, arr, dep_at=dep_at)],
    }])


def by_direction(outbound, inbound):
    """Search responder that answers by origin airport."""
    def respond(request):
        if request.url.params["originLocationCode"] == "NKC":
            return httpx.Response(200, json=search_response(*outbound, carriers={"TK": "TURKISH AIRLINES"}))
        return httpx.Response(200, json=search_response(*inbound))
    return respond


@pytest.fixture
def services(test_settings, http_client, clock):
    return build_services(test_settings, http_client=http_client, clock=clock, monotonic=clock)


@pytest.mark.asyncio
async def test_one_way_search(provider, services):
    provider.get(SEARCH_PATH).respond(200, json=search_response(
        leg_offer("a", "200.00", "AF", "NKC", "CDG", "2026-11-10T08:00:00"),
        leg_offer("b", "100.00", "TK", "NKC", "CDG", "2026-11-10T09:00:00"),
    ))
    request = FlightSearchRequest(origin="NKC", destination="CDG", departure_date=date(2026, 11, 10))

    itineraries = await services.search.search(services.search.build_criteria(request))

    assert [it.outbound.id for it in itineraries] == ["a", "b"]
    assert all(it.return_offer is None for it in itineraries)
    assert TAG_CHEAPEST in itineraries[1].tags


@pytest.mark.asyncio
async def test_round_trip_searches_each_direction_and_composes(provider, services):
    route = provider.get(SEARCH_PATH)
    route.side_effect = by_direction(
        outbound=[
            leg_offer("o1", "100.00", "TK", "NKC", "CDG", "2026-11-10T08:00:00"),
            leg_offer("o2", "120.00", "AF", "NKC", "CDG", "2026-11-10T10:00:00"),
        ],
        inbound=[
            leg_offer("r1", "90.00", "TK", "CDG", "NKC", "2026-11-20T08:00:00"),
            leg_offer("r2", "95.00", "AF", "CDG", "NKC", "2026-11-20T12:00:00"),
            leg_offer("r3", "99.00", "L6", "CDG", "NKC", "2026-11-20T15:00:00"),
        ],
    )
    request = FlightSearchRequest(
        origin="NKC",
        destination="CDG",
        departure_date=date(2026, 11, 10),
        return_date=date(2026, 11, 20),
    )

    itineraries = await services.search.search(services.search.build_criteria(request))

    assert route.call_count == 2
    directions = sorted(c.request.url.params["originLocationCode"] for c in route.calls)
    assert directions == ["CDG", "NKC"]
    assert all("returnDate" not in c.request.url.params for c in route.calls)

    assert len(itineraries) == 6
    assert itineraries[0].key == ("o1", "r1")
    assert itineraries[0].total_price == 45000 + 40500
    assert TAG_CHEAPEST in itineraries[0].tags
    assert TAG_SAME_AIRLINE in itineraries[0].tags
    assert services.references.airline_name("TK") == "TURKISH AIRLINES"


@pytest.mark.asyncio
async def test_round_trip_caps_each_side(provider, test_settings, http_client, clock):
    settings = test_settings.model_copy(update={"compose_cap_per_leg": 2})
    services = build_services(settings, http_client=http_client, clock=clock, monotonic=clock)
    offers = [
        leg_offer(f"x{i}", f"{100 + i}.00", "TK", "NKC", "CDG", "2026-11-10T08:00:00")
        for i in range(5)
    ]
    provider.get(SEARCH_PATH).respond(200, json=search_response(*offers))
    request = FlightSearchRequest(
        origin="NKC",
        destination="CDG",
        departure_date=date(2026, 11, 10),
        return_date=date(2026, 11, 20),
    )

    itineraries = await services.search.search(services.search.build_criteria(request))

    assert len(itineraries) == 4
    assert {it.outbound.id for it in itineraries} == {"x0", "x1"}


@pytest.mark.asyncio
async def test_browse_month_streams_every_day(provider, services):
    provider.get(SEARCH_PATH).respond(200, json=search_response(raw_offer(total="50.00")))
    services.search._today = lambda: date(2027, 2, 1)
    request = FlightSearchRequest(origin="NKC", destination="CDG", departure_date=date(2027, 2, 1))
    seen = []

    cells = await services.search.browse_month(
        services.search.build_criteria(request), 2027, 2, lambda cell, outcome: seen.append(cell.date)
    )

    assert len(cells) == 28
    assert len(seen) == 28
    assert all(c.min_price == 22500 for c in cells)


@pytest.mark.asyncio
async def test_build_criteria_applies_currency_and_cap(services):
    request = FlightSearchRequest(origin="nkc", destination="ist", departure_date=date(2026, 11, 10))

    criteria = services.search.build_criteria(request)

    assert criteria.origin == "NKC"
    assert criteria.destination == "IST"
    assert criteria.currency == "EUR"
    assert criteria.max_results == 20


@pytest.mark.asyncio
async def test_malformed_day_does_not_break_the_month(provider, services):
    services.search._today = lambda: date(2027, 2, 1)
    broken_day = "2027-02-10"
    garbled_day = "2027-02-11"

    def respond(request):
        day = request.url.params["departureDate"]
        if day == broken_day:
            return httpx.Response(200, json=[raw_offer()])
        body = search_response(raw_offer("good", total="50.00"))
        if day == garbled_day:
            body["data"].insert(0, None)
        return httpx.Response(200, json=body)

    provider.get(SEARCH_PATH).side_effect = respond
    request = FlightSearchRequest(origin="NKC", destination="CDG", departure_date=date(2027, 2, 1))

    cells = await services.search.browse_month(services.search.build_criteria(request), 2027, 2)

    by_day = {c.date.isoformat(): c for c in cells}
    assert len(by_day) == 28
    assert by_day[broken_day].status == DayStatus.ERROR
    assert by_day[broken_day].min_price is None
    assert by_day[garbled_day].status == DayStatus.OK
    assert by_day[garbled_day].min_price == 22500
    assert all(c.status == DayStatus.OK for key, c in by_day.items() if key != broken_day)


class RouteSearcher:
    """Records (route, day, clock time) per call and yields to the loop mid-call."""

    def __init__(self, clock, throttled=None):
        self.clock = clock
        self.throttled = throttled
        self.calls = []

    async def search(self, criteria):
        key = (criteria.destination, criteria.departure_date)
        self.calls.append((*key, self.clock()))
        await asyncio.sleep(0)
        if key == self.throttled:
            raise RateLimitError("slow down")
        return [make_offer(f"{criteria.destination}-{criteria.departure_date}")]


def shared_gate_service(searcher, clock, fake_sleep):
    return FlightSearchService(
        searcher,
        gate_factory=lambda: FixedIntervalGate(2.0, 2.5, 60.0, clock=clock, sleep=fake_sleep),
        today=lambda: date(2027, 1, 31),
    )


def route_criteria(destination):
    return SearchCriteria(origin="NKC", destination=destination, departure_date=date(2027, 2, 1))


@pytest.mark.asyncio
async def test_concurrent_calendar_runs_share_one_gate(clock, fake_sleep):
    searcher = RouteSearcher(clock)
    service = shared_gate_service(searcher, clock, fake_sleep)

    paris, istanbul = await asyncio.gather(
        service.browse_month(route_criteria("CDG"), 2027, 2),
        service.browse_month(route_criteria("IST"), 2027, 2),
    )

    assert all(c.status == DayStatus.OK for c in paris + istanbul)
    assert {dest for dest, _, _ in searcher.calls} == {"CDG", "IST"}
    assert len(searcher.calls) == 56
    times = [t for _, _, t in searcher.calls]
    gaps = [b - a for a, b in zip(times, times[1:])]
    assert all(gap >= 2.0 - 1e-6 for gap in gaps)


@pytest.mark.asyncio
async def test_rate_limit_in_one_run_delays_the_other(clock, fake_sleep):
    throttled = ("CDG", date(2027, 2, 3))
    searcher = RouteSearcher(clock, throttled=throttled)
    service = shared_gate_service(searcher, clock, fake_sleep)

    paris, istanbul = await asyncio.gather(
        service.browse_month(route_criteria("CDG"), 2027, 2),
        service.browse_month(route_criteria("IST"), 2027, 2),
    )

    assert [c.status for c in paris].count(DayStatus.ERROR) == 1
    assert all(c.status == DayStatus.OK for c in istanbul)
    index = [(dest, day) for dest, day, _ in searcher.calls].index(throttled)
    gap_after_throttle = searcher.calls[index + 1][2] - searcher.calls[index][2]
    assert gap_after_throttle >= 5.0 - 1e-6
