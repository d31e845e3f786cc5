"""Airport router — autocomplete and airline/city display names."""

from fastapi import APIRouter, Depends, Query

from app.dependencies import FlightServices, get_services

router = APIRouter()


@router.get("/search")
async def search_airports(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    services: FlightServices = Depends(get_services),
):
    """Search airports and cities by code or name."""
    return await services.references.search_locations(q, limit)


@router.get("/airlines/{code}")
async def get_airline(code: str, services: FlightServices = Depends(get_services)):
    code = code.upper()
    return {"code": code, "name": services.references.airline_name(code)}


@router.get("/cities/{code}")
async def get_city(code: str, services: FlightServices = Depends(get_services)):
    code = code.upper()
    return {"code": code, "name": services.references.city_name(code)}
