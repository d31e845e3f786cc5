"""Booking payload — the normalized record handed to the persistence layer to store verbatim."""

import secrets
from datetime import datetime, timezone

from app.schemas.booking import BookingContact, BookingStatus, Traveler
from app.schemas.flight import Itinerary


def new_tracking_token() -> str:
    return secrets.token_urlsafe(16)


def build_booking_payload(
    itinerary: Itinerary,
    travelers: list[Traveler],
    contact: BookingContact,
    tracking_token: str | None = None,
) -> dict:
    """JSON-ready booking record. Provider totals already cover every traveler on the offer."""
    if not travelers:
        raise ValueError("a booking needs at least one traveler")

    offers = [itinerary.outbound]
    if itinerary.return_offer is not None:
        offers.append(itinerary.return_offer)

    return {
        "tracking_token": tracking_token or new_tracking_token(),
        "status": BookingStatus.PENDING.value,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "contact": contact.model_dump(mode="json"),
        "passengers": [t.model_dump(mode="json") for t in travelers],
        "itinerary": itinerary.model_dump(mode="json"),
        "provider_offers": [o.raw for o in offers],
        "total_amount": itinerary.total_price,
        "currency": itinerary.display_currency,
    }
