"""FastAPI dependency injection helpers."""

from fastapi import Depends, Request

from src.infrastructure.repositories import (
    CityRepository,
    CountryRepository,
    ReviewRepository,
    VenueRepository,
)
from src.infrastructure.rest_client import BackendClient


def get_backend(request: Request) -> BackendClient:
    """Return the backend client opened by the application lifespan."""
    return request.app.state.backend


def get_country_repository(
    client: BackendClient = Depends(get_backend),
) -> CountryRepository:
    return CountryRepository(client)


def get_city_repository(client: BackendClient = Depends(get_backend)) -> CityRepository:
    return CityRepository(client)


def get_venue_repository(
    client: BackendClient = Depends(get_backend),
) -> VenueRepository:
    return VenueRepository(client)


def get_review_repository(
    client: BackendClient = Depends(get_backend),
) -> ReviewRepository:
    return ReviewRepository(client)
