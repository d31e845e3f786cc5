from datetime import date

import pytest

from factories import make_offer

from app.schemas.booking import BookingContact, BookingStatus, Traveler
from app.services.booking_payload import build_booking_payload
from app.services.itinerary_composer import pair


def make_traveler(first_name="Mohamed"):
    return Traveler(
        first_name=first_name,
        last_name="Ould Ahmed",
        date_of_birth=date(1985, 6, 15),
        email="mohamed@example.com",
        phone_number="22000000",
    )


CONTACT = BookingContact(
    first_name="Mohamed",
    last_name="Ould Ahmed",
    email="mohamed@example.com",
    phone_number="22000000",
)


def test_payload_carries_itinerary_and_provider_offers():
    outbound = make_offer("o1", price=40000).model_copy(update={"raw": {"id": "o1", "source": "GDS"}})
    inbound = make_offer("r1", price=35000).model_copy(update={"raw": {"id": "r1", "source": "GDS"}})
    itinerary = pair(outbound, inbound)

    payload = build_booking_payload(
        itinerary, [make_traveler(), make_traveler("Fatimetou")], CONTACT, tracking_token="abc"
    )

    assert payload["tracking_token"] == "abc"
    assert payload["status"] == BookingStatus.PENDING.value
    assert payload["total_amount"] == 75000
    assert payload["currency"] == "MRU"
    assert [p["first_name"] for p in payload["passengers"]] == ["Mohamed", "Fatimetou"]
    assert payload["passengers"][0]["date_of_birth"] == "1985-06-15"
    assert payload["contact"]["email"] == "mohamed@example.com"
    assert payload["provider_offers"] == [{"id": "o1", "source": "GDS"}, {"id": "r1", "source": "GDS"}]
    assert payload["itinerary"]["outbound"]["id"] == "o1"
    assert "raw" not in payload["itinerary"]["outbound"]


def test_tracking_token_generated_when_missing():
    itinerary = pair(make_offer("o"), make_offer("r"))

    first = build_booking_payload(itinerary, [make_traveler()], CONTACT)
    second = build_booking_payload(itinerary, [make_traveler()], CONTACT)

    assert first["tracking_token"]
    assert first["tracking_token"] != second["tracking_token"]


def test_travelers_required():
    itinerary = pair(make_offer("o"), make_offer("r"))

    with pytest.raises(ValueError):
        build_booking_payload(itinerary, [], CONTACT)
