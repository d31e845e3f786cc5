"""Search router — one-way and round-trip flight search with tagged itineraries."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from app.data.currency import format_price
from app.dependencies import FlightServices, get_services
from app.schemas.flight import Itinerary
from app.schemas.search import FlightSearchRequest
from app.services.exceptions import (
    AuthenticationError,
    FlightProviderError,
    InvalidRequestError,
    RateLimitError,
)
from app.services.ranking_tagger import sort_itineraries
from app.services.reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)

router = APIRouter()

SEARCH_TIMEOUT_S = 90.0


def provider_http_error(e: FlightProviderError) -> HTTPException:
    """Map provider failures onto the status the client should react to."""
    if isinstance(e, InvalidRequestError):
        return HTTPException(status_code=400, detail=e.detail)
    if isinstance(e, RateLimitError):
        headers = {"Retry-After": str(int(e.retry_after))} if e.retry_after else None
        return HTTPException(
            status_code=429,
            detail="Flight provider is busy. Try again shortly.",
            headers=headers,
        )
    if isinstance(e, AuthenticationError):
        return HTTPException(status_code=502, detail="Flight provider authentication failed.")
    return HTTPException(status_code=503, detail="Flight provider unavailable. Try again shortly.")


def _offers(itin: Itinerary):
    return [itin.outbound] + ([itin.return_offer] if itin.return_offer else [])


def itinerary_airports(itin: Itinerary) -> set[str]:
    airports: set[str] = set()
    for offer in _offers(itin):
        for leg in offer.itineraries:
            for seg in leg.segments:
                airports.update((seg.departure_airport, seg.arrival_airport))
    return airports


def present_itinerary(itin: Itinerary, refs: ReferenceResolver) -> dict:
    """Serialize an itinerary with display names for every carrier and airport it touches."""
    data = itin.model_dump(mode="json")
    carriers: set[str] = set()
    for offer in _offers(itin):
        carriers |= offer.carrier_codes
    airports = itinerary_airports(itin)
    data["total_price_display"] = format_price(itin.total_price, itin.display_currency)
    data["airlines"] = {code: refs.airline_name(code) for code in sorted(carriers)}
    data["cities"] = {code: refs.city_name(code) for code in sorted(airports)}
    return data


@router.post("/flights")
async def search_flights(
    req: FlightSearchRequest,
    services: FlightServices = Depends(get_services),
):
    """Search one-way or round-trip flights and return tagged itineraries."""
    try:
        criteria = services.search.build_criteria(req)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[{"loc": err["loc"], "msg": err["msg"]} for err in e.errors()])

    try:
        itineraries = await asyncio.wait_for(services.search.search(criteria), timeout=SEARCH_TIMEOUT_S)
    except asyncio.TimeoutError:
        logger.error(f"Search timed out for {criteria.cache_key()}")
        raise HTTPException(status_code=504, detail="Search timed out. Please try again.")
    except FlightProviderError as e:
        logger.warning(f"Search failed for {criteria.cache_key()}: {e}")
        raise provider_http_error(e)

    if req.sort:
        itineraries = sort_itineraries(itineraries, req.sort)

    # City names not in the static table are looked up on first sight.
    await services.references.resolve_cities(
        code for it in itineraries for code in itinerary_airports(it)
    )

    return {
        "itineraries": [present_itinerary(it, services.references) for it in itineraries],
        "count": len(itineraries),
        "metadata": {
            "origin": criteria.origin,
            "destination": criteria.destination,
            "departure_date": criteria.departure_date.isoformat(),
            "return_date": criteria.return_date.isoformat() if criteria.return_date else None,
            "round_trip": criteria.is_round_trip,
            "currency": services.client.display_currency,
        },
    }
