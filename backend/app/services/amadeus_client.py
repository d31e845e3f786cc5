"""Amadeus API client — flight search, reference data and orders over one HTTP client."""

import logging
import re
from collections.abc import Callable
from decimal import Decimal
from typing import Any

import httpx

from app.data.currency import convert_amount, parse_amount
from app.schemas.booking import BookingContact, Traveler
from app.schemas.flight import Leg, Offer, Price, Segment
from app.schemas.search import SearchCriteria
from app.services.cache_service import ResponseCache
from app.services.exceptions import (
    AuthenticationError,
    InvalidRequestError,
    RateLimitError,
    UpstreamUnavailableError,
)
from app.services.token_manager import Credential, TokenManager

logger = logging.getLogger(__name__)

SEARCH_PATH = "/v2/shopping/flight-offers"
PRICING_PATH = "/v1/shopping/flight-offers/pricing"
ORDERS_PATH = "/v1/booking/flight-orders"
AIRLINES_PATH = "/v1/reference-data/airlines"
LOCATIONS_PATH = "/v1/reference-data/locations"

_ISO_DURATION = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)


def parse_duration(duration_str: str | None) -> int:
    """Parse an ISO 8601 duration (PT2H30M, P1DT3H) to whole minutes. Returns 0 if unparseable."""
    if not duration_str:
        return 0
    match = _ISO_DURATION.match(duration_str.strip())
    if not match:
        return 0
    days = int(match.group("days") or 0)
    hours = int(match.group("hours") or 0)
    minutes = int(match.group("minutes") or 0)
    seconds = float(match.group("seconds") or 0)
    return days * 24 * 60 + hours * 60 + minutes + int(seconds // 60)


def _provider_error_detail(resp: httpx.Response) -> str:
    """Pull the first error detail out of an Amadeus error body."""
    try:
        errors = resp.json().get("errors") or []
    except (ValueError, AttributeError):
        return resp.text[:200]
    if not errors:
        return resp.text[:200]
    first = errors[0]
    return first.get("detail") or first.get("title") or str(first)


def _retry_after(resp: httpx.Response) -> float | None:
    value = resp.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class AmadeusClient:
    """Adapter for the Amadeus Self-Service API.

    This is the only component that knows the wire format. Searches go
    through the token manager and the response cache; nothing here retries.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_manager: TokenManager,
        cache: ResponseCache,
        *,
        conversion_rate: Decimal = Decimal("450"),
        display_currency: str = "MRU",
        issuance_path: str = ORDERS_PATH + "/{order_id}/issuance",
        on_carriers: Callable[[dict[str, str]], None] | None = None,
    ):
        self._http = http_client
        self._tokens = token_manager
        self._cache = cache
        self.conversion_rate = conversion_rate
        self.display_currency = display_currency
        self._issuance_path = issuance_path
        self._on_carriers = on_carriers

    # --- Flight search ---

    async def search(self, criteria: SearchCriteria) -> list[Offer]:
        """Search flight offers; identical criteria within the cache TTL hit the network once."""
        credential = await self._tokens.get_token()

        cache_key = criteria.cache_key()
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.info(f"CACHE HIT {cache_key}")
            return list(cached)

        logger.info(f"CACHE MISS {cache_key} -> Amadeus API")
        data = await self._send(
            "GET", SEARCH_PATH, params=criteria.to_query_params(), credential=credential
        )

        dictionaries = data.get("dictionaries")
        carriers = dictionaries.get("carriers") if isinstance(dictionaries, dict) else None
        if isinstance(carriers, dict) and carriers and self._on_carriers is not None:
            self._on_carriers(carriers)

        offers = self.parse_offers(data, default_currency=criteria.currency)
        self._cache.put(cache_key, tuple(offers))
        logger.info(
            f"Found {len(offers)} offers for {criteria.origin}->{criteria.destination} "
            f"on {criteria.departure_date}"
        )
        return offers

    def parse_offers(self, data: dict[str, Any], default_currency: str = "EUR") -> list[Offer]:
        """Normalize a search response, dropping offers without usable itineraries."""
        offers: list[Offer] = []
        discarded = 0
        raw_offers = data.get("data") or []
        if not isinstance(raw_offers, list):
            raise UpstreamUnavailableError("Flight provider returned a malformed offer list")
        for raw in raw_offers:
            try:
                offer = self._parse_offer(raw, default_currency) if isinstance(raw, dict) else None
            except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
                logger.debug(f"Offer parse skipped: {e}")
                offer = None
            if offer is None:
                discarded += 1
                continue
            offers.append(offer)

        if discarded:
            logger.warning(f"Discarded {discarded} malformed offers out of {discarded + len(offers)}")
        return offers

    def _parse_offer(self, raw: dict[str, Any], default_currency: str) -> Offer | None:
        legs = [self._parse_leg(itin) for itin in raw.get("itineraries") or []]
        if not legs or any(not leg.segments for leg in legs):
            # A leg without segments is a malformed response, not "no flights".
            logger.debug(f"Offer {raw.get('id')} has no segments, discarding")
            return None

        price_block = raw["price"]
        total = parse_amount(price_block["total"])
        price = Price(
            currency=price_block.get("currency") or default_currency,
            total=total,
            base=parse_amount(price_block["base"]) if price_block.get("base") else None,
            grand_total=parse_amount(price_block["grandTotal"]) if price_block.get("grandTotal") else None,
        )

        cabin = fare_class = fare_basis = None
        traveler_pricings = raw.get("travelerPricings") or []
        if traveler_pricings:
            fare_details = traveler_pricings[0].get("fareDetailsBySegment") or []
            if fare_details:
                cabin = fare_details[0].get("cabin")
                fare_class = fare_details[0].get("class")
                fare_basis = fare_details[0].get("fareBasis")

        return Offer(
            id=str(raw["id"]),
            itineraries=tuple(legs),
            price=price,
            display_price=convert_amount(total, self.conversion_rate),
            display_currency=self.display_currency,
            cabin=cabin,
            fare_class=fare_class,
            fare_basis=fare_basis,
            bookable_seats=raw.get("numberOfBookableSeats"),
            validating_airline_codes=tuple(raw.get("validatingAirlineCodes") or ()),
            last_ticketing_date=raw.get("lastTicketingDate"),
            one_way=len(legs) == 1,
            raw=raw,
        )

    @staticmethod
    def _parse_leg(itinerary: dict[str, Any]) -> Leg:
        segments = []
        for seg in itinerary.get("segments") or []:
            carrier = seg["carrierCode"]
            segments.append(Segment(
                departure_airport=seg["departure"]["iataCode"],
                departure_terminal=seg["departure"].get("terminal"),
                departure_time=seg["departure"]["at"],
                arrival_airport=seg["arrival"]["iataCode"],
                arrival_terminal=seg["arrival"].get("terminal"),
                arrival_time=seg["arrival"]["at"],
                carrier_code=carrier,
                flight_number=f"{carrier}{seg.get('number', '')}",
                operating_carrier_code=(seg.get("operating") or {}).get("carrierCode"),
                aircraft=(seg.get("aircraft") or {}).get("code"),
                duration_minutes=parse_duration(seg.get("duration")),
                number_of_stops=int(seg.get("numberOfStops") or 0),
            ))

        duration = parse_duration(itinerary.get("duration"))
        if not duration:
            duration = sum(s.duration_minutes for s in segments)
        return Leg(duration_minutes=duration, segments=tuple(segments))

    # --- Reference data ---

    async def fetch_airlines(self, codes: list[str] | None = None) -> dict[str, str]:
        """Airline code -> display name from the provider's reference endpoint."""
        params = {"airlineCodes": ",".join(codes)} if codes else None
        data = await self._send("GET", AIRLINES_PATH, params=params)
        names: dict[str, str] = {}
        for item in data.get("data") or []:
            if not isinstance(item, dict):
                continue
            code = item.get("iataCode")
            name = item.get("commonName") or item.get("businessName")
            if code and name:
                names[code] = name
        return names

    async def search_locations(self, keyword: str, limit: int = 10) -> list[dict]:
        """Airports and cities matching a keyword, for autocomplete."""
        data = await self._send(
            "GET",
            LOCATIONS_PATH,
            params={"subType": "AIRPORT,CITY", "keyword": keyword, "page[limit]": limit},
        )
        results = []
        for item in data.get("data") or []:
            if not isinstance(item, dict):
                continue
            address = item.get("address") or {}
            results.append({
                "iata": item.get("iataCode"),
                "name": item.get("name"),
                "city": address.get("cityName"),
                "city_code": address.get("cityCode"),
                "country": address.get("countryName"),
                "sub_type": item.get("subType"),
            })
        return results

    async def fetch_city_name(self, code: str) -> str | None:
        """City name for an airport or city code, or None when the provider doesn't know it."""
        for loc in await self.search_locations(code, limit=5):
            if loc["iata"] == code and loc.get("city"):
                return loc["city"]
        return None

    # --- Orders ---

    async def price_offer(self, offer: Offer) -> dict:
        """Confirm the final price of an offer before holding it."""
        payload = {"data": {"type": "flight-offers-pricing", "flightOffers": [offer.raw]}}
        return await self._send("POST", PRICING_PATH, json=payload)

    async def create_hold(
        self,
        flight_offers: list[dict],
        travelers: list[Traveler],
        contact: BookingContact,
    ) -> dict:
        """Create a flight order that is held, not ticketed, until confirmed."""
        payload = {
            "data": {
                "type": "flight-order",
                "flightOffers": flight_offers,
                "travelers": [self._traveler_payload(i, t) for i, t in enumerate(travelers, start=1)],
                "ticketingAgreement": {"option": "DELAY_TO_CANCEL", "delay": "6H"},
                "contacts": [{
                    "addresseeName": {"firstName": contact.first_name, "lastName": contact.last_name},
                    "purpose": "STANDARD",
                    "phones": [{
                        "deviceType": "MOBILE",
                        "countryCallingCode": contact.phone_country_code,
                        "number": contact.phone_number.lstrip("+"),
                    }],
                    "emailAddress": contact.email,
                }],
            }
        }
        logger.info(f"Creating flight order hold for {len(travelers)} travelers")
        return await self._send("POST", ORDERS_PATH, json=payload)

    async def confirm_hold(self, order_id: str) -> dict:
        """Turn a held order into a ticketed booking."""
        logger.info(f"Confirming flight order {order_id}")
        return await self._send("POST", self._issuance_path.format(order_id=order_id), json={})

    async def get_order(self, order_id: str) -> dict:
        return await self._send("GET", f"{ORDERS_PATH}/{order_id}")

    @staticmethod
    def _traveler_payload(traveler_id: int, t: Traveler) -> dict:
        payload: dict[str, Any] = {
            "id": str(traveler_id),
            "dateOfBirth": t.date_of_birth.isoformat(),
            "name": {"firstName": t.first_name, "lastName": t.last_name},
            "gender": t.gender,
            "contact": {
                "emailAddress": t.email,
                "phones": [{
                    "deviceType": "MOBILE",
                    "countryCallingCode": t.phone_country_code,
                    "number": t.phone_number.lstrip("+"),
                }],
            },
        }
        if t.document:
            payload["documents"] = [{
                "documentType": t.document.document_type,
                "number": t.document.number,
                "expiryDate": t.document.expiry_date.isoformat(),
                "issuanceCountry": t.document.issuance_country,
                "nationality": t.document.nationality,
                "holder": True,
            }]
        return payload

    # --- Transport ---

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json: dict | None = None,
        credential: Credential | None = None,
    ) -> dict:
        """Issue one authenticated request and map failures onto the provider error taxonomy."""
        if credential is None:
            credential = await self._tokens.get_token()
        headers = {"Authorization": f"Bearer {credential.access_token}"}

        try:
            resp = await self._http.request(method, path, params=params, json=json, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"Amadeus request error on {method} {path}: {e}")
            raise UpstreamUnavailableError(f"Flight provider unreachable: {e}") from e

        self._raise_for_status(resp, method, path)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamUnavailableError("Flight provider returned a malformed body") from e
        if not isinstance(data, dict):
            logger.error(f"Amadeus returned a non-object body on {method} {path}")
            raise UpstreamUnavailableError("Flight provider returned a malformed body")
        return data

    def _raise_for_status(self, resp: httpx.Response, method: str, path: str) -> None:
        status = resp.status_code
        if status < 400:
            return

        detail = _provider_error_detail(resp)
        if status == 401:
            # Token revoked early; the next call exchanges credentials again.
            self._tokens.invalidate()
            raise AuthenticationError("Flight provider rejected the access token", status_code=status, detail=detail)
        if status == 429:
            retry_after = _retry_after(resp)
            logger.warning(f"Amadeus rate limit on {method} {path} (retry after {retry_after})")
            raise RateLimitError("Flight provider rate limit exceeded", retry_after=retry_after, detail=detail)
        if status < 500:
            logger.error(f"Amadeus HTTP error: {status} {detail}")
            raise InvalidRequestError(f"Flight provider rejected the request: {detail}", status_code=status, detail=detail)

        logger.error(f"Amadeus upstream error: {status} {detail}")
        raise UpstreamUnavailableError(f"Flight provider unavailable (HTTP {status})", status_code=status, detail=detail)

    async def close(self):
        await self._http.aclose()
