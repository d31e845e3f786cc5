from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TravelClass = Literal["ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST"]
SortKey = Literal["price", "duration", "departure"]

# Amadeus rejects anything above this on the search endpoint.
PROVIDER_MAX_RESULTS = 250


class SearchCriteria(BaseModel):
    """A normalized flight search. Identical searches produce identical cache keys."""

    model_config = ConfigDict(frozen=True)

    origin: str = Field(..., min_length=3, max_length=3)
    destination: str = Field(..., min_length=3, max_length=3)
    departure_date: date
    return_date: date | None = None
    adults: int = Field(1, ge=1, le=9)
    children: int = Field(0, ge=0, le=9)
    infants: int = Field(0, ge=0, le=9)
    travel_class: TravelClass | None = None
    non_stop: bool = False
    currency: str = "EUR"
    max_results: int = Field(20, ge=1, le=PROVIDER_MAX_RESULTS)

    @field_validator("origin", "destination", "currency", mode="before")
    @classmethod
    def _upper(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("travel_class", mode="before")
    @classmethod
    def _upper_class(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v

    @model_validator(mode="after")
    def _check_consistency(self):
        if self.origin == self.destination:
            raise ValueError("origin and destination must differ")
        if self.return_date is not None and self.return_date < self.departure_date:
            raise ValueError("return_date must not be before departure_date")
        if self.infants > self.adults:
            raise ValueError("each infant must travel with an adult")
        return self

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None

    def cache_key(self) -> str:
        parts = [
            "offers",
            self.origin,
            self.destination,
            self.departure_date.isoformat(),
            self.return_date.isoformat() if self.return_date else "ow",
            f"a{self.adults}",
            f"c{self.children}",
            f"i{self.infants}",
            (self.travel_class or "any").lower(),
            "ns" if self.non_stop else "all",
            self.currency,
            f"max{self.max_results}",
        ]
        return ":".join(parts)

    def to_query_params(self) -> dict[str, str | int]:
        params: dict[str, str | int] = {
            "originLocationCode": self.origin,
            "destinationLocationCode": self.destination,
            "departureDate": self.departure_date.isoformat(),
            "adults": self.adults,
            "currencyCode": self.currency,
            "max": self.max_results,
        }
        if self.return_date:
            params["returnDate"] = self.return_date.isoformat()
        if self.children:
            params["children"] = self.children
        if self.infants:
            params["infants"] = self.infants
        if self.travel_class:
            params["travelClass"] = self.travel_class
        if self.non_stop:
            params["nonStop"] = "true"
        return params

    def outbound_leg(self) -> "SearchCriteria":
        """One-way search for the outbound direction."""
        return self.model_copy(update={"return_date": None})

    def return_leg(self) -> "SearchCriteria":
        """One-way search for the return direction (swapped airports, return date)."""
        if self.return_date is None:
            raise ValueError("criteria has no return date")
        return self.model_copy(update={
            "origin": self.destination,
            "destination": self.origin,
            "departure_date": self.return_date,
            "return_date": None,
        })

    def for_day(self, day: date) -> "SearchCriteria":
        """One-way search on a different day, used by calendar browsing."""
        return self.model_copy(update={"departure_date": day, "return_date": None})


class FlightSearchRequest(BaseModel):
    origin: str
    destination: str
    departure_date: date
    return_date: date | None = None
    adults: int = 1
    children: int = 0
    infants: int = 0
    travel_class: str | None = None
    non_stop: bool = False
    sort: SortKey | None = None
