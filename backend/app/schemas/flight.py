from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Segment(BaseModel):
    """One physical flight inside a leg."""

    model_config = ConfigDict(frozen=True)

    departure_airport: str
    departure_terminal: str | None = None
    departure_time: str
    arrival_airport: str
    arrival_terminal: str | None = None
    arrival_time: str
    carrier_code: str
    flight_number: str
    operating_carrier_code: str | None = None
    aircraft: str | None = None
    duration_minutes: int = 0
    number_of_stops: int = 0


class Leg(BaseModel):
    """One direction of travel: ordered segments plus the provider's leg duration."""

    model_config = ConfigDict(frozen=True)

    duration_minutes: int
    segments: tuple[Segment, ...]

    @property
    def departure_airport(self) -> str:
        return self.segments[0].departure_airport

    @property
    def arrival_airport(self) -> str:
        return self.segments[-1].arrival_airport

    @property
    def departure_time(self) -> str:
        return self.segments[0].departure_time

    @property
    def arrival_time(self) -> str:
        return self.segments[-1].arrival_time

    @property
    def carrier_code(self) -> str:
        return self.segments[0].carrier_code

    @property
    def stops(self) -> int:
        return len(self.segments) - 1


class Price(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str
    total: Decimal
    base: Decimal | None = None
    grand_total: Decimal | None = None


class Offer(BaseModel):
    """A normalized, immutable provider offer.

    ``price`` stays in the provider currency; ``display_price`` is the derived
    amount in ``display_currency``. ``raw`` keeps the provider payload verbatim
    because pricing and order endpoints require it unchanged.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    itineraries: tuple[Leg, ...]
    price: Price
    display_price: int
    display_currency: str
    cabin: str | None = None
    fare_class: str | None = None
    fare_basis: str | None = None
    bookable_seats: int | None = None
    validating_airline_codes: tuple[str, ...] = ()
    last_ticketing_date: str | None = None
    one_way: bool = True
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)

    @property
    def primary_carrier(self) -> str:
        return self.itineraries[0].carrier_code

    @property
    def duration_minutes(self) -> int:
        return sum(leg.duration_minutes for leg in self.itineraries)

    @property
    def has_connection(self) -> bool:
        return any(len(leg.segments) > 1 for leg in self.itineraries)

    @property
    def departure_time(self) -> str:
        return self.itineraries[0].departure_time

    @property
    def carrier_codes(self) -> set[str]:
        return {seg.carrier_code for leg in self.itineraries for seg in leg.segments}


class Itinerary(BaseModel):
    """An outbound offer, optionally paired with a return offer, with derived totals."""

    outbound: Offer
    return_offer: Offer | None = None
    total_price: int
    display_currency: str
    total_duration_minutes: int
    total_duration: str
    same_airline: bool = False
    self_transfer: bool = False
    tags: set[str] = Field(default_factory=set)

    @property
    def is_round_trip(self) -> bool:
        return self.return_offer is not None

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.outbound.id, self.return_offer.id if self.return_offer else None)

    @field_serializer("tags")
    def _serialize_tags(self, tags: set[str]) -> list[str]:
        return sorted(tags)


class DayStatus(str, Enum):
    PENDING = "pending"
    OK = "ok"
    ERROR = "error"


class CalendarDayPrice(BaseModel):
    """Per-day calendar cell, updated in place as the day's fetch resolves."""

    date: date
    min_price: int | None = None
    offer_count: int = 0
    available: bool = False
    status: DayStatus = DayStatus.PENDING
    error: str | None = None

    def resolve(self, offers: list[Offer]) -> None:
        self.offer_count = len(offers)
        self.min_price = min((o.display_price for o in offers), default=None)
        self.available = bool(offers)
        self.status = DayStatus.OK
        self.error = None

    def mark_unavailable(self) -> None:
        self.resolve([])

    def fail(self, error: Exception) -> None:
        # A failed day never carries a price.
        self.min_price = None
        self.offer_count = 0
        self.available = False
        self.status = DayStatus.ERROR
        self.error = str(error) or type(error).__name__
