"""
Venue endpoints
===============

GET  /api/v1/cities/{city_id}/venues     -- city listing (?search=&type=)
GET  /api/v1/venues?ids=1&ids=2          -- batch lookup (favorites)
GET  /api/v1/venues/nearby               -- venues around ?lat=&lng=
GET  /api/v1/venues/{venue_id}/reviews   -- latest reviews of a venue
POST /api/v1/venues/{venue_id}/reviews   -- submit a review
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import get_review_repository, get_venue_repository
from src.api.middleware import limiter
from src.api.schemas import (
    BACKEND_ERROR_RESPONSES,
    NearbyResponse,
    ReviewCreateRequest,
    ReviewListResponse,
    ReviewResponse,
    VenueResponse,
)
from src.config import settings
from src.domain.entities import Coordinate, QuerySpec, ReviewDraft, average_rating
from src.domain.enums import VenueFilter
from src.infrastructure.location import LocationProvider, StaticLocationPlatform
from src.infrastructure.repositories import ReviewRepository, VenueRepository
from src.services.nearby import NearbyVenuePipeline

router = APIRouter(tags=["venues"])


@router.get(
    "/cities/{city_id}/venues",
    response_model=list[VenueResponse],
    summary="List the venues of a city",
    description=(
        "Venues ordered by name.  ``type`` narrows to mosques or "
        "restaurants; ``search`` matches name or address, ignoring case."
    ),
    responses=BACKEND_ERROR_RESPONSES,
)
@limiter.limit(settings.rate_limit)
async def list_city_venues(
    request: Request,
    city_id: int,
    search: str = "",
    type: VenueFilter = VenueFilter.ALL,
    repo: VenueRepository = Depends(get_venue_repository),
):
    venues = await repo.query_by_city(
        QuerySpec(city_id=city_id, search_text=search, venue_type=type)
    )
    return [VenueResponse.from_entity(v) for v in venues]


@router.get(
    "/venues",
    response_model=list[VenueResponse],
    summary="Look up venues by id",
    responses=BACKEND_ERROR_RESPONSES,
)
@limiter.limit(settings.rate_limit)
async def get_venues_by_ids(
    request: Request,
    ids: list[int] = Query(default=[]),
    repo: VenueRepository = Depends(get_venue_repository),
):
    return [VenueResponse.from_entity(v) for v in await repo.query_by_ids(ids)]


@router.get(
    "/venues/nearby",
    response_model=NearbyResponse,
    summary="Find venues near a coordinate",
    description=(
        "The client sends the device fix it already obtained.  Results are "
        "sorted by distance; venues without coordinates come last."
    ),
    responses=BACKEND_ERROR_RESPONSES,
)
@limiter.limit(settings.rate_limit)
async def find_nearby_venues(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0),
    type: VenueFilter = VenueFilter.ALL,
    repo: VenueRepository = Depends(get_venue_repository),
):
    origin = Coordinate.validated(lat, lng)
    location = LocationProvider(StaticLocationPlatform(origin))
    result = await NearbyVenuePipeline(location, repo).find_nearby(radius_km, type)
    return NearbyResponse.from_result(result)


@router.get(
    "/venues/{venue_id}/reviews",
    response_model=ReviewListResponse,
    summary="Latest reviews of a venue",
    responses=BACKEND_ERROR_RESPONSES,
)
@limiter.limit(settings.rate_limit)
async def list_reviews(
    request: Request,
    venue_id: int,
    limit: int = Query(settings.reviews_page_size, ge=1, le=100),
    repo: ReviewRepository = Depends(get_review_repository),
):
    reviews = await repo.list_for_venue(venue_id, limit=limit)
    return ReviewListResponse(
        venue_id=venue_id,
        average_rating=round(average_rating(reviews), 2),
        reviews=[ReviewResponse.from_entity(r) for r in reviews],
    )


@router.post(
    "/venues/{venue_id}/reviews",
    status_code=201,
    response_model=ReviewResponse,
    summary="Submit a review",
    responses=BACKEND_ERROR_RESPONSES,
)
@limiter.limit(settings.rate_limit)
async def submit_review(
    request: Request,
    venue_id: int,
    body: ReviewCreateRequest,
    repo: ReviewRepository = Depends(get_review_repository),
):
    draft = ReviewDraft(
        venue_id=venue_id,
        user_name=body.user_name,
        rating=body.rating,
        comment=body.comment,
    )
    if body.visit_date is not None:
        draft.visit_date = body.visit_date
    review = await repo.submit(draft)
    return ReviewResponse.from_entity(review)
