import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "flightdesk.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from app.data.reference_tables import AIRLINE_NAMES
from app.dependencies import build_services
from app.routers import airports, calendar, search

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: provider services shared by every request
    services = getattr(app.state, "services", None)
    owns_services = services is None
    if owns_services:
        services = build_services(settings)
        app.state.services = services

    if settings.reference_preload_enabled and settings.amadeus_client_id:
        # Cities resolve lazily per search; only carriers are loaded up front.
        await services.references.refresh(airline_codes=sorted(AIRLINE_NAMES))
    elif not settings.amadeus_client_id:
        logger.warning("Amadeus credentials not configured; searches will fail with authentication errors")

    yield

    # Shutdown
    if owns_services:
        await services.close()
        logger.info("Amadeus HTTP client closed")


app = FastAPI(
    title="FlightDesk",
    description="Flight offer search and itinerary composition",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(search.router, prefix="/api/search", tags=["search"])
app.include_router(calendar.router, prefix="/api/calendar", tags=["calendar"])
app.include_router(airports.router, prefix="/api/airports", tags=["airports"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "flightdesk"}
