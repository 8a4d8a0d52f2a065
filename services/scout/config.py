"""
Application configuration via pydantic-settings.
All config read from environment variables with sensible defaults for local dev.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # App
    app_name: str = "scout-api"
    app_version: str = "0.1.0"
    environment: str = Field(default="development", pattern=r"^(development|staging|production)$")
    debug: bool = False

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"]
    )

    # Sentry
    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)

    # Weather stations (WindBorne)
    # Provider allows 20 requests per rolling minute.
    windborne_base: str = "https://sfc.windbornesystems.com"
    weather_rate_limit_requests: int = Field(default=20, ge=1)
    weather_rate_limit_window_ms: int = Field(default=60_000, ge=1)

    # Outbound HTTP timeout, applied to both providers
    upstream_timeout_s: float = Field(default=10.0, gt=0.0)

    # Flights (SerpApi Google Flights engine)
    serpapi_key: str = ""
    serpapi_flights_endpoint: str = "https://serpapi.com/search.json"
    serpapi_default_hl: str = "en"
    serpapi_default_gl: str = "us"
    serpapi_default_currency: str = "USD"

    # Response cache
    stations_cache_ttl_ms: int = 5 * 60_000
    weather_cache_ttl_ms: int = 2 * 60_000
    flights_cache_ttl_ms: int = 15 * 60_000
    response_cache_max_entries: int = Field(default=0, ge=0)  # 0 = unbounded

    # Destination ranking
    airport_search_radius_km: float = Field(default=150.0, gt=0.0)
    destination_offers_per_station: int = Field(default=3, ge=1, le=20)

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
