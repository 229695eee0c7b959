"""Tests for distance annotation/ordering and the nearby-venue pipeline."""

from __future__ import annotations

import math
from unittest.mock import AsyncMock

import pytest

from src.domain.distance import distance_km
from src.domain.entities import Coordinate, Venue
from src.domain.enums import VenueFilter, VenueType
from src.domain.errors import NetworkError, PermissionDenied
from src.domain.proximity import annotate_distances, sort_by_distance, sort_key
from src.infrastructure.location import LocationProvider, StaticLocationPlatform
from src.services.nearby import NearbyResult, NearbyVenuePipeline
from tests.conftest import STOCKHOLM

ORIGIN = Coordinate(*STOCKHOLM)


def _venue(id, name, location=None, distance=None):
    return Venue(
        id=id,
        type=VenueType.MOSQUE,
        name=name,
        location=location,
        distance_km=distance,
    )


class TestProximity:
    def test_annotates_missing_distances(self):
        here = Coordinate(59.3165, 18.0718)
        [venue] = annotate_distances([_venue(1, "A", here)], ORIGIN)
        assert venue.distance_km == distance_km(ORIGIN, here)

    def test_server_distance_is_preferred(self):
        [venue] = annotate_distances(
            [_venue(1, "A", Coordinate(59.3165, 18.0718), distance=9.0)], ORIGIN
        )
        assert venue.distance_km == 9.0

    def test_missing_coordinates_stay_unannotated(self):
        [venue] = annotate_distances([_venue(1, "A")], ORIGIN)
        assert venue.distance_km is None
        assert sort_key(venue) == math.inf
        assert venue.display_distance_km is None

    def test_sort_ascending_with_unlocated_last(self):
        venues = [
            _venue(1, "Aaa no coords"),
            _venue(2, "far", distance=7.0),
            _venue(3, "near", distance=0.4),
        ]
        assert [v.id for v in sort_by_distance(venues)] == [3, 2, 1]

    def test_sort_keeps_full_precision(self):
        venues = [_venue(1, "a", distance=1.004), _venue(2, "b", distance=1.001)]
        assert [v.id for v in sort_by_distance(venues)] == [2, 1]


class TestNearbyPipeline:
    @pytest.mark.asyncio
    async def test_sorted_and_annotated(self, venue_repo):
        location = LocationProvider(StaticLocationPlatform(ORIGIN))
        result = await NearbyVenuePipeline(location, venue_repo).find_nearby(20)

        distances = [v.distance_km for v in result.venues if v.distance_km is not None]
        assert distances == sorted(distances)
        assert result.venues[-1].name == "Falafel House"  # no coordinates
        assert result.venues[0].name == "Stockholm Mosque"
        assert result.origin == ORIGIN

    @pytest.mark.asyncio
    async def test_type_filter_and_default_radius(self, venue_repo, fake_backend):
        location = LocationProvider(StaticLocationPlatform(ORIGIN))
        result = await NearbyVenuePipeline(location, venue_repo).find_nearby(
            venue_type=VenueFilter.RESTAURANT
        )
        assert {v.type for v in result.venues} == {VenueType.RESTAURANT}
        assert result.radius_km == 10.0

    @pytest.mark.asyncio
    async def test_server_radius_is_not_refiltered(self, venue_repo, fake_backend):
        fake_backend.rpc_overrides[3] = {"distance_km": 999.0}
        location = LocationProvider(StaticLocationPlatform(ORIGIN))
        result = await NearbyVenuePipeline(location, venue_repo).find_nearby(20)
        assert result.venues[-2].id == 3
        assert result.venues[-2].distance_km == 999.0

    @pytest.mark.asyncio
    async def test_permission_denied_never_queries(self):
        repo = AsyncMock()
        location = LocationProvider(StaticLocationPlatform(ORIGIN, permission_granted=False))
        with pytest.raises(PermissionDenied):
            await NearbyVenuePipeline(location, repo).find_nearby(10)
        repo.within_radius.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_result_is_success(self):
        repo = AsyncMock()
        repo.within_radius = AsyncMock(return_value=[])
        location = LocationProvider(StaticLocationPlatform(ORIGIN))
        result = await NearbyVenuePipeline(location, repo).find_nearby(2)
        assert result.is_empty
        assert result.summary().startswith("No venues found within 2km")

    @pytest.mark.asyncio
    async def test_query_failure_propagates(self):
        repo = AsyncMock()
        repo.within_radius = AsyncMock(side_effect=NetworkError())
        location = LocationProvider(StaticLocationPlatform(ORIGIN))
        with pytest.raises(NetworkError):
            await NearbyVenuePipeline(location, repo).find_nearby(2)


class TestNearbyResult:
    def test_summary_counts_venues(self):
        result = NearbyResult(ORIGIN, 10, [_venue(1, "A")])
        assert result.summary() == "Found 1 venue(s) within 10km of your location."
