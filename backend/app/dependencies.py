"""Service wiring — one shared set of provider-facing services per process."""

import time
from dataclasses import dataclass
from functools import partial

import httpx
from fastapi import Request

from app.config import Settings
from app.services.amadeus_client import AmadeusClient
from app.services.cache_service import ResponseCache
from app.services.rate_limiter import FixedIntervalGate
from app.services.reference_resolver import ReferenceResolver
from app.services.search_orchestrator import FlightSearchService
from app.services.token_manager import TokenManager


@dataclass
class FlightServices:
    http_client: httpx.AsyncClient
    tokens: TokenManager
    cache: ResponseCache
    client: AmadeusClient
    references: ReferenceResolver
    search: FlightSearchService

    async def close(self):
        await self.http_client.aclose()


def build_services(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    clock=time.time,
    monotonic=time.monotonic,
) -> FlightServices:
    """Construct the service graph. Tests pass their own HTTP client and clocks."""
    if http_client is None:
        http_client = httpx.AsyncClient(
            base_url=settings.amadeus_base_url,
            timeout=settings.amadeus_timeout_s,
        )

    tokens = TokenManager(
        http_client,
        settings.amadeus_client_id,
        settings.amadeus_client_secret,
        refresh_margin_s=settings.token_refresh_margin_s,
        clock=clock,
    )
    cache = ResponseCache(ttl=settings.search_cache_ttl_s, clock=monotonic)
    references = ReferenceResolver()
    client = AmadeusClient(
        http_client,
        tokens,
        cache,
        conversion_rate=settings.conversion_rate,
        display_currency=settings.display_currency,
        issuance_path=settings.amadeus_issuance_path,
        on_carriers=references.remember_airlines,
    )
    references.provider = client

    search = FlightSearchService(
        client,
        request_currency=settings.request_currency,
        result_cap=settings.search_result_cap,
        compose_cap_per_leg=settings.compose_cap_per_leg,
        best_overall_fraction=settings.best_overall_fraction,
        gate_factory=partial(
            FixedIntervalGate,
            settings.calendar_min_interval_s,
            settings.calendar_backoff_multiplier,
            settings.calendar_max_backoff_s,
        ),
    )
    return FlightServices(
        http_client=http_client,
        tokens=tokens,
        cache=cache,
        client=client,
        references=references,
        search=search,
    )


def get_services(request: Request) -> FlightServices:
    return request.app.state.services
