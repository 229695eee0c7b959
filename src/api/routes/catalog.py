"""
Catalog endpoints
=================

GET /api/v1/countries                     -- all countries, ordered by id
GET /api/v1/countries/{country_id}/cities -- cities of a country, by name
"""

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_city_repository, get_country_repository
from src.api.middleware import limiter
from src.api.schemas import BACKEND_ERROR_RESPONSES, CityResponse, CountryResponse
from src.config import settings
from src.infrastructure.repositories import CityRepository, CountryRepository

router = APIRouter(tags=["catalog"])


@router.get(
    "/countries",
    response_model=list[CountryResponse],
    summary="List countries",
    responses=BACKEND_ERROR_RESPONSES,
)
@limiter.limit(settings.rate_limit)
async def list_countries(
    request: Request,
    repo: CountryRepository = Depends(get_country_repository),
):
    return [CountryResponse.from_entity(c) for c in await repo.list_all()]


@router.get(
    "/countries/{country_id}/cities",
    response_model=list[CityResponse],
    summary="List the cities of a country",
    responses=BACKEND_ERROR_RESPONSES,
)
@limiter.limit(settings.rate_limit)
async def list_cities(
    request: Request,
    country_id: int,
    repo: CityRepository = Depends(get_city_repository),
):
    return [CityResponse.from_entity(c) for c in await repo.list_by_country(country_id)]
