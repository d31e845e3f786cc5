"""Reference resolver — airline and city display names that degrade to raw codes."""

import logging
from collections.abc import Iterable
from typing import Protocol

from app.data.reference_tables import AIRLINE_NAMES, CITY_NAMES

logger = logging.getLogger(__name__)


class ReferenceProvider(Protocol):
    async def fetch_airlines(self, codes: list[str] | None = None) -> dict[str, str]: ...

    async def fetch_city_name(self, code: str) -> str | None: ...

    async def search_locations(self, keyword: str, limit: int = 10) -> list[dict]: ...


class ReferenceResolver:
    """Resolves codes to names: loaded cache first, then the static table, then the code itself.

    Nothing here raises to callers. Provider failures are logged and the
    resolver keeps answering from what it already has.
    """

    def __init__(
        self,
        provider: ReferenceProvider | None = None,
        *,
        static_airlines: dict[str, str] | None = None,
        static_cities: dict[str, str] | None = None,
    ):
        self.provider = provider
        self._static_airlines = AIRLINE_NAMES if static_airlines is None else static_airlines
        self._static_cities = CITY_NAMES if static_cities is None else static_cities
        self._airlines: dict[str, str] = {}
        self._cities: dict[str, str] = {}
        self._city_lookups_tried: set[str] = set()

    def airline_name(self, code: str) -> str:
        code = (code or "").strip().upper()
        return self._airlines.get(code) or self._static_airlines.get(code) or code

    def city_name(self, code: str) -> str:
        code = (code or "").strip().upper()
        return self._cities.get(code) or self._static_cities.get(code) or code

    def remember_airlines(self, names: dict[str, str]) -> None:
        """Merge carrier names seen in a search response's dictionaries."""
        for code, name in names.items():
            if code and name:
                self._airlines[code.upper()] = name

    async def refresh(
        self,
        airline_codes: list[str] | None = None,
        location_codes: list[str] | None = None,
    ) -> None:
        """Best-effort load from the provider's reference endpoints."""
        if self.provider is None:
            return

        if airline_codes is not None:
            try:
                airlines = await self.provider.fetch_airlines(airline_codes)
                self.remember_airlines(airlines)
                logger.info(f"Loaded {len(airlines)} airline names")
            except Exception as e:
                logger.warning(f"Airline reference data unavailable, using static names: {e}")

        loaded = 0
        for code in location_codes or []:
            try:
                name = await self.provider.fetch_city_name(code)
            except Exception as e:
                logger.warning(f"Location reference data unavailable, using static names: {e}")
                break
            if name:
                self._cities[code.upper()] = name
                loaded += 1
        if location_codes:
            logger.info(f"Loaded {loaded}/{len(location_codes)} city names")

    async def resolve_cities(self, codes: Iterable[str]) -> None:
        """Look up codes that are neither loaded nor in the static table. Each code is tried once."""
        unknown = sorted({
            code.strip().upper()
            for code in codes
            if code and code.strip().upper() not in self._cities
            and code.strip().upper() not in self._static_cities
            and code.strip().upper() not in self._city_lookups_tried
        })
        if not unknown or self.provider is None:
            return
        self._city_lookups_tried.update(unknown)
        await self.refresh(location_codes=unknown)

    async def search_locations(self, keyword: str, limit: int = 10) -> list[dict]:
        """Autocomplete airports/cities; falls back to the static table when the provider fails."""
        keyword = keyword.strip()
        if self.provider is not None:
            try:
                return await self.provider.search_locations(keyword, limit)
            except Exception as e:
                logger.warning(f"Location search failed for {keyword!r}, using static table: {e}")

        q = keyword.lower()
        matches = [
            {"iata": code, "name": name, "city": name, "city_code": None, "country": None, "sub_type": "AIRPORT"}
            for code, name in self._static_cities.items()
            if code.lower().startswith(q) or q in name.lower()
        ]
        return matches[:limit]
