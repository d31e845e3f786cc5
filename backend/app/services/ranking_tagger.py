"""Ranking tagger — labels itineraries by price, duration and airline continuity."""

import math

from app.schemas.flight import Itinerary

TAG_CHEAPEST = "Cheapest"
TAG_FASTEST = "Fastest"
TAG_SAME_AIRLINE = "Same Airline"
TAG_BEST_OVERALL = "Best Overall"

BEST_OVERALL_FRACTION = 0.3


def _ranks(itineraries: list[Itinerary], key) -> dict[int, int]:
    """1-based rank per input position under a stable ascending sort."""
    order = sorted(range(len(itineraries)), key=lambda i: key(itineraries[i]))
    return {idx: rank for rank, idx in enumerate(order, start=1)}


def tag_itineraries(
    itineraries: list[Itinerary],
    best_overall_fraction: float = BEST_OVERALL_FRACTION,
) -> list[Itinerary]:
    """
    Assign tags in place and return the same list, order unchanged.

    - "Cheapest" / "Fastest": exactly one each, the first in a stable
      ascending sort, so ties go to the earlier itinerary.
    - "Same Airline": every round trip flown by one carrier.
    - "Best Overall": same-airline, not self-transfer, and both price rank and
      duration rank within the best `best_overall_fraction` of the set.
    """
    if not itineraries:
        return itineraries

    for itin in itineraries:
        itin.tags = set()

    price_rank = _ranks(itineraries, lambda it: it.total_price)
    duration_rank = _ranks(itineraries, lambda it: it.total_duration_minutes)
    cutoff = max(1, math.ceil(len(itineraries) * best_overall_fraction))

    for idx, itin in enumerate(itineraries):
        if price_rank[idx] == 1:
            itin.tags.add(TAG_CHEAPEST)
        if duration_rank[idx] == 1:
            itin.tags.add(TAG_FASTEST)
        if itin.is_round_trip and itin.same_airline:
            itin.tags.add(TAG_SAME_AIRLINE)
            if (
                not itin.self_transfer
                and price_rank[idx] <= cutoff
                and duration_rank[idx] <= cutoff
            ):
                itin.tags.add(TAG_BEST_OVERALL)

    return itineraries


def sort_itineraries(itineraries: list[Itinerary], sort_by: str = "price") -> list[Itinerary]:
    """Presentation order: by price, duration or departure time (stable)."""
    keys = {
        "price": lambda it: it.total_price,
        "duration": lambda it: it.total_duration_minutes,
        "departure": lambda it: it.outbound.departure_time,
    }
    key = keys.get(sort_by)
    if key is None:
        raise ValueError(f"Unknown sort key: {sort_by}")
    return sorted(itineraries, key=key)
