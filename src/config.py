"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Hosted backend (PostgREST-style REST API)
    backend_url: str = "http://localhost:54321"
    backend_api_key: str = ""
    request_timeout_seconds: float = 30.0

    # Device location
    location_timeout_seconds: float = 15.0
    location_max_age_seconds: float = 10.0  # reuse a cached fix this fresh

    # Discovery
    default_radius_km: float = 10.0
    reviews_page_size: int = 20

    # Gateway
    rate_limit: str = "100/minute"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": "HALAL_FINDER_", "extra": "ignore"}


settings = Settings()
