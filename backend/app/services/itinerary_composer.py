"""Itinerary composer — pairs outbound and return offers into round-trip candidates."""

from app.schemas.flight import Itinerary, Offer


def format_duration(minutes: int) -> str:
    """Minutes to a display string: 435 -> '7h 15m', 300 -> '5h', 45 -> '45m'."""
    hours, mins = divmod(max(minutes, 0), 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"


def cap_offers(offers: list[Offer], cap: int) -> list[Offer]:
    """Keep the `cap` best offers of one leg, cheapest first, then shortest.

    Composition cost is outbound x return, so each side is bounded here
    before pairing rather than discarding most of the cross-product later.
    """
    if cap <= 0:
        return []
    ranked = sorted(offers, key=lambda o: (o.display_price, o.duration_minutes))
    return ranked[:cap]


def one_way(offers: list[Offer]) -> list[Itinerary]:
    """Wrap lone offers as one-way itineraries."""
    return [
        Itinerary(
            outbound=offer,
            total_price=offer.display_price,
            display_currency=offer.display_currency,
            total_duration_minutes=offer.duration_minutes,
            total_duration=format_duration(offer.duration_minutes),
        )
        for offer in offers
    ]


def pair(outbound: Offer, return_offer: Offer) -> Itinerary:
    same_airline = outbound.primary_carrier == return_offer.primary_carrier
    self_transfer = (
        not same_airline
        or outbound.has_connection
        or return_offer.has_connection
    )
    total_minutes = outbound.duration_minutes + return_offer.duration_minutes
    return Itinerary(
        outbound=outbound,
        return_offer=return_offer,
        total_price=outbound.display_price + return_offer.display_price,
        display_currency=outbound.display_currency,
        total_duration_minutes=total_minutes,
        total_duration=format_duration(total_minutes),
        same_airline=same_airline,
        self_transfer=self_transfer,
    )


def compose(outbound_offers: list[Offer], return_offers: list[Offer]) -> list[Itinerary]:
    """Full cross-product, outbound-major. No filtering or deduplication."""
    return [pair(out, ret) for out in outbound_offers for ret in return_offers]
