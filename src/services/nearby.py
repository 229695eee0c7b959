"""
Nearby-venue pipeline
=====================

1. Get the device coordinate (location errors propagate unchanged).
2. Ask the backend for venues within the radius (the server owns the bound;
   results are never re-filtered by distance here).
3. Annotate venues the server did not annotate with a Haversine distance.
4. Sort ascending by distance, venues without coordinates last.

An empty list is a successful result; callers present "nothing nearby"
and "lookup failed" differently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from src.config import settings
from src.domain.entities import Coordinate, NearbySpec, Venue
from src.domain.enums import VenueFilter
from src.domain.proximity import annotate_distances, sort_by_distance
from src.infrastructure.location import LocationProvider
from src.infrastructure.repositories import VenueRepository

logger = logging.getLogger(__name__)


@dataclass
class NearbyResult:
    origin: Coordinate
    radius_km: float
    venues: list[Venue] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.venues

    def summary(self) -> str:
        if self.is_empty:
            return (
                f"No venues found within {self.radius_km:g}km. "
                "Try expanding your search or browse by city."
            )
        return f"Found {len(self.venues)} venue(s) within {self.radius_km:g}km of your location."


class NearbyVenuePipeline:
    def __init__(self, location: LocationProvider, venues: VenueRepository):
        self.location = location
        self.venues = venues

    async def find_nearby(
        self,
        radius_km: Optional[float] = None,
        venue_type: Optional[VenueFilter] = None,
    ) -> NearbyResult:
        origin = await self.location.get_current_location()
        return await self.find_near(origin, radius_km, venue_type)

    async def find_near(
        self,
        origin: Coordinate,
        radius_km: Optional[float] = None,
        venue_type: Optional[VenueFilter] = None,
    ) -> NearbyResult:
        spec = NearbySpec(
            origin=origin,
            radius_km=settings.default_radius_km if radius_km is None else radius_km,
            venue_type=venue_type,
        )
        venues = await self.venues.within_radius(spec)
        venues = sort_by_distance(annotate_distances(venues, origin))
        logger.info(
            "Nearby search at %s (%gkm, %s): %d venues",
            origin.format(),
            spec.radius_km,
            spec.server_type.value if spec.server_type else "all",
            len(venues),
        )
        return NearbyResult(origin=origin, radius_km=spec.radius_km, venues=venues)
