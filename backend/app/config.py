from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Amadeus
    amadeus_client_id: str = ""
    amadeus_client_secret: str = ""
    amadeus_base_url: str = "https://test.api.amadeus.com"
    amadeus_timeout_s: float = 30.0
    amadeus_issuance_path: str = "/v1/booking/flight-orders/{order_id}/issuance"

    # Token lifecycle
    token_refresh_margin_s: int = 60

    # Search cache
    search_cache_ttl_s: int = 5 * 60

    # Pricing: offers are requested in one currency and displayed in another
    request_currency: str = "EUR"
    display_currency: str = "MRU"
    conversion_rate: Decimal = Decimal("450")

    # Result caps (round-trip composition is outbound cap x return cap)
    search_result_cap: int = 20
    compose_cap_per_leg: int = 10

    # Calendar browsing rate limit
    calendar_min_interval_s: float = 2.0
    calendar_backoff_multiplier: float = 2.5
    calendar_max_backoff_s: float = 60.0

    # Ranking
    best_overall_fraction: float = 0.3

    # Reference data
    reference_preload_enabled: bool = True

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
