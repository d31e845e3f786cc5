"""Calendar router — streams the lowest price per day of a month as each day resolves."""

import asyncio
import json
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from app.dependencies import FlightServices, get_services
from app.schemas.flight import CalendarDayPrice
from app.schemas.search import SearchCriteria
from app.services.calendar_scheduler import CancellationToken, DayOutcome

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{origin}/{destination}")
async def browse_calendar(
    origin: str,
    destination: str,
    month: str = Query(..., pattern=r"^\d{4}-\d{2}$"),
    adults: int = Query(1, ge=1, le=9),
    services: FlightServices = Depends(get_services),
):
    """NDJSON stream, one line per day. Closing the connection stops the scan."""
    year, mon = int(month[:4]), int(month[5:7])
    if not 1 <= mon <= 12:
        raise HTTPException(status_code=422, detail="Invalid month")

    try:
        criteria = SearchCriteria(
            origin=origin,
            destination=destination,
            departure_date=date(year, mon, 1),
            adults=adults,
            currency=services.search.request_currency,
            max_results=services.search.result_cap,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[{"loc": err["loc"], "msg": err["msg"]} for err in e.errors()])

    token = CancellationToken()
    queue: asyncio.Queue[dict | None] = asyncio.Queue()

    async def on_day(cell: CalendarDayPrice, _outcome: DayOutcome) -> None:
        await queue.put(cell.model_dump(mode="json"))

    async def run() -> None:
        try:
            await services.search.browse_month(criteria, year, mon, on_day, token)
        finally:
            await queue.put(None)

    async def stream():
        task = asyncio.create_task(run())
        try:
            while (item := await queue.get()) is not None:
                yield json.dumps(item) + "\n"
            await task
        finally:
            # Client went away or the stream ended: stop issuing provider calls.
            token.cancel()
            if not task.done():
                task.cancel()
                logger.info(f"Calendar scan {criteria.origin}->{criteria.destination} {month} abandoned")

    return StreamingResponse(stream(), media_type="application/x-ndjson")
