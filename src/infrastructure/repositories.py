"""
Repository Pattern -- abstracts backend access so domain logic stays
transport-agnostic.

Each repository receives a ``BackendClient`` and exposes one explicitly
named operation per request shape (equality filter, IN-clause, RPC), so
no caller ever assembles loosely-typed query options itself.
"""

from __future__ import annotations

import logging
from typing import Iterable, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as RowValidationError

from .models import CityRow, CountryRow, ReviewRow, VenueRow, review_insert_payload
from .rest_client import BackendClient
from src.config import settings
from src.domain.entities import (
    City,
    Country,
    NearbySpec,
    QuerySpec,
    Review,
    ReviewDraft,
    Venue,
)
from src.domain.errors import QueryError
from src.domain.search import filter_by_search

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)

NEARBY_FUNCTION = "venues_within_radius"


def _parse(rows: list[dict], model: type[RowT]) -> list[RowT]:
    try:
        return [model.model_validate(row) for row in rows]
    except RowValidationError as exc:
        raise QueryError(f"Malformed {model.__name__} in backend response") from exc


class CountryRepository:
    def __init__(self, client: BackendClient):
        self.client = client

    async def list_all(self) -> list[Country]:
        rows = await self.client.select("countries", order="id")
        return [r.to_entity() for r in _parse(rows, CountryRow)]


class CityRepository:
    def __init__(self, client: BackendClient):
        self.client = client

    async def list_by_country(self, country_id: int) -> list[City]:
        rows = await self.client.select(
            "cities", eq={"country_id": country_id}, order="name"
        )
        return [r.to_entity() for r in _parse(rows, CityRow)]


class VenueRepository:
    def __init__(self, client: BackendClient):
        self.client = client

    async def query_by_city(self, spec: QuerySpec) -> list[Venue]:
        """City/type scoped listing, ordered by name by the backend.

        ``spec.search_text`` never reaches the server; it is matched
        against name and address once the rows arrive.
        """
        rows = await self.client.select(
            "venues",
            eq={"city_id": spec.city_id, "type": spec.server_type},
            order="name",
        )
        venues = [r.to_entity() for r in _parse(rows, VenueRow)]
        if spec.search_text:
            venues = filter_by_search(venues, spec.search_text)
        logger.debug(
            "city=%s type=%s search=%r -> %d venues",
            spec.city_id,
            spec.server_type,
            spec.search_text,
            len(venues),
        )
        return venues

    async def query_by_ids(self, ids: Iterable[int]) -> list[Venue]:
        """Batch lookup.  Ids with no matching row are simply absent."""
        wanted = sorted(set(ids))
        if not wanted:
            return []
        rows = await self.client.select("venues", in_={"id": wanted}, order="name")
        return [r.to_entity() for r in _parse(rows, VenueRow)]

    async def within_radius(self, spec: NearbySpec) -> list[Venue]:
        """Server-side geospatial search; the backend owns the radius bound."""
        rows = await self.client.rpc(
            NEARBY_FUNCTION,
            {
                "search_lat": spec.origin.latitude,
                "search_lng": spec.origin.longitude,
                "radius_km": spec.radius_km,
                "venue_type": spec.server_type,
            },
        )
        return [r.to_entity() for r in _parse(rows, VenueRow)]


class ReviewRepository:
    def __init__(self, client: BackendClient):
        self.client = client

    async def list_for_venue(
        self, venue_id: int, limit: int | None = None
    ) -> list[Review]:
        rows = await self.client.select(
            "reviews",
            eq={"venue_id": venue_id},
            order="created_at.desc",
            limit=limit or settings.reviews_page_size,
        )
        return [r.to_entity() for r in _parse(rows, ReviewRow)]

    async def submit(self, draft: ReviewDraft) -> Review:
        """Validate and create a review.  Nothing is kept locally on failure."""
        draft.validate()
        rows = await self.client.insert("reviews", review_insert_payload(draft))
        created = _parse(rows, ReviewRow)
        if not created:
            raise QueryError("Backend did not return the created review")
        logger.info("Review %d submitted for venue %d", created[0].id, draft.venue_id)
        return created[0].to_entity()
