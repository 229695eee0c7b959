"""
Pydantic row models for the backend's JSON payloads.

Tables / functions
------------------
* ``countries``               -- country catalogue with coverage status
* ``cities``                  -- cities with per-type venue counts
* ``venues``                  -- mosques and halal restaurants
* ``reviews``                 -- user reviews of a venue
* ``venues_within_radius()``  -- venue rows, optionally with ``distance_km``

Each row model validates the raw JSON and converts it to a domain entity
with ``to_entity``.  Unknown columns are ignored so backend schema
additions do not break the client.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.entities import (
    SUB_RATING_FIELDS,
    City,
    Coordinate,
    Country,
    Review,
    ReviewDraft,
    Venue,
)
from src.domain.enums import CountryStatus, VenueType


class CountryRow(BaseModel):
    id: int
    name: str
    flag_emoji: Optional[str] = None
    status: CountryStatus = CountryStatus.PENDING
    city_count: Optional[int] = None
    venue_count: Optional[int] = None

    model_config = {"extra": "ignore"}

    def to_entity(self) -> Country:
        return Country(
            id=self.id,
            name=self.name,
            flag_emoji=self.flag_emoji or "",
            status=self.status,
            city_count=self.city_count or 0,
            venue_count=self.venue_count or 0,
        )


class CityRow(BaseModel):
    id: int
    name: str
    country_id: Optional[int] = None
    mosque_count: Optional[int] = None
    restaurant_count: Optional[int] = None

    model_config = {"extra": "ignore"}

    def to_entity(self) -> City:
        return City(
            id=self.id,
            name=self.name,
            country_id=self.country_id,
            mosque_count=self.mosque_count or 0,
            restaurant_count=self.restaurant_count or 0,
        )


class VenueRow(BaseModel):
    id: int
    type: VenueType
    name: str
    address: Optional[str] = None
    city_id: Optional[int] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    # The aggregate has been published under both names
    overall_rating: Optional[float] = None
    rating: Optional[float] = None
    total_reviews: Optional[int] = None
    review_count: Optional[int] = None
    recent_reviews: Optional[int] = None
    verified_status: Optional[bool] = None

    prayer_facilities_rating: Optional[float] = None
    cleanliness_rating: Optional[float] = None
    halal_certification_rating: Optional[float] = None
    food_quality_rating: Optional[float] = None

    distance_km: Optional[float] = Field(None, ge=0)

    model_config = {"extra": "ignore"}

    def to_entity(self) -> Venue:
        location = None
        if self.latitude is not None and self.longitude is not None:
            location = Coordinate(self.latitude, self.longitude)
        rating = self.overall_rating if self.overall_rating is not None else self.rating
        count = (
            self.total_reviews if self.total_reviews is not None else self.review_count
        )
        return Venue(
            id=self.id,
            type=self.type,
            name=self.name,
            address=self.address or "",
            city_id=self.city_id,
            location=location,
            rating=rating or 0.0,
            review_count=count or 0,
            verified=bool(self.verified_status),
            recent_reviews=self.recent_reviews or 0,
            sub_ratings={
                name: getattr(self, name) for name in SUB_RATING_FIELDS[self.type]
            },
            distance_km=self.distance_km,
        )


class ReviewRow(BaseModel):
    id: int
    venue_id: int
    user_name: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    visit_date: Optional[date] = None
    is_verified: Optional[bool] = None
    created_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    def to_entity(self) -> Review:
        return Review(
            id=self.id,
            venue_id=self.venue_id,
            user_name=self.user_name,
            rating=self.rating,
            comment=self.comment or "",
            visit_date=self.visit_date,
            is_verified=bool(self.is_verified),
            created_at=self.created_at,
        )


def review_insert_payload(draft: ReviewDraft) -> dict:
    """Body of ``POST /reviews`` for an already validated draft."""
    return {
        "venue_id": draft.venue_id,
        "user_name": draft.user_name,
        "rating": draft.rating,
        "comment": draft.comment,
        "visit_date": draft.visit_date.isoformat(),
        "is_verified": draft.is_verified,
    }
