"""Pydantic request / response schemas for the gateway API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.entities import MAX_COMMENT_LENGTH, City, Country, Review, Venue
from src.services.nearby import NearbyResult


# ── Requests ──────────────────────────────────────────────────────────


class ReviewCreateRequest(BaseModel):
    user_name: str = Field(..., min_length=1, max_length=120)
    rating: int = Field(5, ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)
    visit_date: Optional[date] = Field(
        None, description="Defaults to today when omitted."
    )


# ── Responses ─────────────────────────────────────────────────────────


class CountryResponse(BaseModel):
    id: int
    name: str
    flag_emoji: str
    status: str
    city_count: int
    venue_count: int

    @classmethod
    def from_entity(cls, country: Country) -> CountryResponse:
        return cls(
            id=country.id,
            name=country.name,
            flag_emoji=country.flag_emoji,
            status=country.status.value,
            city_count=country.city_count,
            venue_count=country.venue_count,
        )


class CityResponse(BaseModel):
    id: int
    name: str
    country_id: Optional[int] = None
    mosque_count: int
    restaurant_count: int
    venue_count: int

    @classmethod
    def from_entity(cls, city: City) -> CityResponse:
        return cls(
            id=city.id,
            name=city.name,
            country_id=city.country_id,
            mosque_count=city.mosque_count,
            restaurant_count=city.restaurant_count,
            venue_count=city.venue_count,
        )


class VenueResponse(BaseModel):
    id: int
    type: str
    name: str
    address: str
    city_id: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rating: float
    review_count: int
    verified: bool
    recent_reviews: int = 0
    sub_ratings: dict[str, float] = {}
    distance_km: Optional[float] = None
    maps_url: str

    @classmethod
    def from_entity(cls, venue: Venue) -> VenueResponse:
        return cls(
            id=venue.id,
            type=venue.type.value,
            name=venue.name,
            address=venue.address,
            city_id=venue.city_id,
            latitude=venue.location.latitude if venue.location else None,
            longitude=venue.location.longitude if venue.location else None,
            rating=venue.rating,
            review_count=venue.review_count,
            verified=venue.verified,
            recent_reviews=venue.recent_reviews,
            sub_ratings=venue.sub_ratings,
            distance_km=venue.display_distance_km,
            maps_url=venue.maps_url(),
        )


class NearbyResponse(BaseModel):
    latitude: float
    longitude: float
    radius_km: float
    message: str
    venues: list[VenueResponse] = []

    @classmethod
    def from_result(cls, result: NearbyResult) -> NearbyResponse:
        return cls(
            latitude=result.origin.latitude,
            longitude=result.origin.longitude,
            radius_km=result.radius_km,
            message=result.summary(),
            venues=[VenueResponse.from_entity(v) for v in result.venues],
        )


class ReviewResponse(BaseModel):
    id: int
    venue_id: int
    user_name: str
    rating: int
    comment: str
    visit_date: Optional[date] = None
    is_verified: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, review: Review) -> ReviewResponse:
        return cls(
            id=review.id,
            venue_id=review.venue_id,
            user_name=review.user_name,
            rating=review.rating,
            comment=review.comment,
            visit_date=review.visit_date,
            is_verified=review.is_verified,
            created_at=review.created_at,
        )


class ReviewListResponse(BaseModel):
    venue_id: int
    average_rating: float
    reviews: list[ReviewResponse] = []


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str


# Documented on every route that reads from or writes to the backend
BACKEND_ERROR_RESPONSES = {
    502: {"model": ErrorResponse, "description": "Backend unreachable or failed."},
}
