"""
Domain entities with business logic.

Patterns used
-------------
- **Tagged variant** on ``Venue``: ``type`` is the discriminant and only the
  sub-ratings belonging to that type are kept.  Mosques and restaurants
  share every other field, so there is no subclass per type.
- **Value objects** for ``Coordinate``, ``QuerySpec`` and ``NearbySpec``:
  built per user action, discarded once the request completes.
- ``ReviewDraft.validate`` encapsulates the review submission rules.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional
from urllib.parse import quote

from .distance import round_km
from .enums import CountryStatus, VenueFilter, VenueType, resolve_venue_type
from .errors import ValidationError

MAX_COMMENT_LENGTH = 500

# Sub-rating fields carried by each venue type
SUB_RATING_FIELDS: dict[VenueType, tuple[str, ...]] = {
    VenueType.MOSQUE: ("prayer_facilities_rating", "cleanliness_rating"),
    VenueType.RESTAURANT: ("halal_certification_rating", "food_quality_rating"),
}


class InvalidStateTransition(Exception):
    """Raised when a location state change violates the state machine."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    @classmethod
    def validated(cls, latitude: float, longitude: float) -> Coordinate:
        """Build a coordinate, rejecting values outside the WGS84 ranges."""
        if not (-90 <= latitude <= 90) or not (-180 <= longitude <= 180):
            raise ValidationError(
                f"Invalid coordinate ({latitude}, {longitude})"
            )
        return cls(latitude, longitude)

    def format(self) -> str:
        return f"{self.latitude:.4f}, {self.longitude:.4f}"


@dataclass(frozen=True)
class QuerySpec:
    """One city-scoped listing intent: city + search text + type filter."""

    city_id: Optional[int] = None
    search_text: str = ""
    venue_type: Optional[VenueFilter] = None

    @property
    def server_type(self) -> Optional[VenueType]:
        return resolve_venue_type(self.venue_type)


@dataclass(frozen=True)
class NearbySpec:
    origin: Coordinate
    radius_km: float
    venue_type: Optional[VenueFilter] = None

    def __post_init__(self):
        if not self.radius_km > 0:
            raise ValidationError(f"Radius must be positive, got {self.radius_km}")

    @property
    def server_type(self) -> Optional[VenueType]:
        return resolve_venue_type(self.venue_type)


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Country:
    id: int
    name: str
    flag_emoji: str = ""
    status: CountryStatus = CountryStatus.PENDING
    city_count: int = 0
    venue_count: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == CountryStatus.ACTIVE


@dataclass
class City:
    id: int
    name: str
    country_id: Optional[int] = None
    mosque_count: int = 0
    restaurant_count: int = 0

    @property
    def venue_count(self) -> int:
        return self.mosque_count + self.restaurant_count


@dataclass
class Venue:
    id: int
    type: VenueType
    name: str
    address: str = ""
    city_id: Optional[int] = None
    location: Optional[Coordinate] = None
    rating: float = 0.0
    review_count: int = 0
    verified: bool = False
    recent_reviews: int = 0
    sub_ratings: dict[str, float] = field(default_factory=dict)
    distance_km: Optional[float] = None  # ephemeral, never persisted

    def __post_init__(self):
        self.type = VenueType(self.type)
        allowed = SUB_RATING_FIELDS[self.type]
        self.sub_ratings = {
            k: v for k, v in self.sub_ratings.items() if k in allowed and v is not None
        }

    @property
    def is_mosque(self) -> bool:
        return self.type == VenueType.MOSQUE

    @property
    def display_distance_km(self) -> Optional[float]:
        if self.distance_km is None or math.isinf(self.distance_km):
            return None
        return round_km(self.distance_km)

    def maps_url(self) -> str:
        """Search URL that opens the venue in Google Maps."""
        return "https://www.google.com/maps/search/" + quote(
            f"{self.name}, {self.address}", safe=""
        )


@dataclass
class Review:
    id: int
    venue_id: int
    user_name: str
    rating: int
    comment: str = ""
    visit_date: Optional[date] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None


@dataclass
class ReviewDraft:
    venue_id: int
    user_name: str
    rating: int = 5
    comment: str = ""
    visit_date: date = field(default_factory=date.today)
    is_verified: bool = False

    def validate(self) -> ReviewDraft:
        """Trim free text and raise ``ValidationError`` if the draft is unusable."""
        self.user_name = (self.user_name or "").strip()
        self.comment = (self.comment or "").strip()
        if not self.user_name or not self.comment:
            raise ValidationError("Please fill in your name and review comment.")
        if not 1 <= self.rating <= 5:
            raise ValidationError("Rating must be between 1 and 5.")
        if len(self.comment) > MAX_COMMENT_LENGTH:
            raise ValidationError(
                f"Review comment must be at most {MAX_COMMENT_LENGTH} characters."
            )
        return self


def average_rating(reviews: list[Review]) -> float:
    if not reviews:
        return 0.0
    return sum(r.rating for r in reviews) / len(reviews)
