"""
Shared test fixtures.

Uses an in-memory fake of the hosted backend (served through
``httpx.MockTransport``) so tests run without network access.  The fake
understands the subset of PostgREST query syntax the client emits:
``col=eq.X``, ``col=in.(a,b)``, ``order=col[.desc]``, ``limit=N``, the
``venues_within_radius`` RPC and inserts.
"""

from __future__ import annotations

import copy
import itertools
import json
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import httpx
import pytest
import pytest_asyncio

from src.domain.distance import haversine_km
from src.infrastructure.rest_client import REST_PREFIX, BackendClient
from src.infrastructure.repositories import (
    CityRepository,
    CountryRepository,
    ReviewRepository,
    VenueRepository,
)

BACKEND_URL = "http://backend.test"
API_KEY = "test-anon-key"

# Stockholm city centre (approx)
STOCKHOLM = (59.3293, 18.0686)
MALMO = (55.6050, 13.0038)


# ── Sample data ───────────────────────────────────────────────────────

COUNTRIES = [
    {"id": 1, "name": "Sweden", "flag_emoji": "🇸🇪", "status": "active",
     "city_count": 2, "venue_count": 6},
    {"id": 2, "name": "Norway", "flag_emoji": "🇳🇴", "status": "pending",
     "city_count": 0, "venue_count": 0},
]

CITIES = [
    {"id": 2, "name": "Malmö", "country_id": 1, "mosque_count": 1,
     "restaurant_count": 0},
    {"id": 1, "name": "Stockholm", "country_id": 1, "mosque_count": 2,
     "restaurant_count": 3},
]

VENUES = [
    {"id": 1, "type": "mosque", "name": "Stockholm Mosque",
     "address": "Kapellgränd 10, Stockholm", "city_id": 1,
     "latitude": 59.3165, "longitude": 18.0718,
     "overall_rating": 4.6, "total_reviews": 120, "verified_status": True,
     "prayer_facilities_rating": 4.8, "cleanliness_rating": 4.5},
    {"id": 2, "type": "restaurant", "name": "Babylon Restaurant",
     "address": "Götgatan 5, Stockholm", "city_id": 1,
     "latitude": 59.3150, "longitude": 18.0720,
     "rating": 4.2, "review_count": 35,
     "halal_certification_rating": 4.9, "food_quality_rating": 4.4,
     "prayer_facilities_rating": 3.0},
    {"id": 3, "type": "mosque", "name": "Fittja Mosque",
     "address": "Fittja, Botkyrka", "city_id": 1,
     "latitude": 59.2466, "longitude": 17.8617,
     "overall_rating": 4.3, "total_reviews": 40},
    {"id": 4, "type": "restaurant", "name": "Al-Amir Grill",
     "address": "Mosquegatan 2, Stockholm", "city_id": 1,
     "latitude": 59.3400, "longitude": 18.0500,
     "overall_rating": 3.9, "total_reviews": 12},
    {"id": 5, "type": "mosque", "name": "Malmö Mosque",
     "address": "Jägersrovägen 149, Malmö", "city_id": 2,
     "latitude": 55.5867, "longitude": 13.0392,
     "overall_rating": 4.7, "total_reviews": 88},
    {"id": 6, "type": "restaurant", "name": "Falafel House",
     "address": "Sveavägen 1, Stockholm", "city_id": 1,
     "latitude": None, "longitude": None,
     "overall_rating": 4.0, "total_reviews": 9},
]

REVIEWS = [
    {"id": 1, "venue_id": 1, "user_name": "Amina", "rating": 5,
     "comment": "Beautiful and calm.", "visit_date": "2024-05-01",
     "is_verified": True, "created_at": "2024-05-02T10:00:00+00:00"},
    {"id": 2, "venue_id": 1, "user_name": "Yusuf", "rating": 4,
     "comment": "Busy on Fridays.", "visit_date": "2024-06-10",
     "is_verified": False, "created_at": "2024-06-11T09:30:00+00:00"},
    {"id": 3, "venue_id": 2, "user_name": "Sara", "rating": 3,
     "comment": "Good food, slow service.", "visit_date": "2024-06-01",
     "is_verified": False, "created_at": "2024-06-01T18:00:00+00:00"},
]


# ── Fake backend ──────────────────────────────────────────────────────


class FakeBackend:
    """Minimal PostgREST lookalike backed by in-memory tables."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {
            "countries": copy.deepcopy(COUNTRIES),
            "cities": copy.deepcopy(CITIES),
            "venues": copy.deepcopy(VENUES),
            "reviews": copy.deepcopy(REVIEWS),
        }
        self.requests: list[httpx.Request] = []
        self.fail_status: Optional[int] = None
        self.network_down = False
        # Extra columns the radius RPC adds per venue id (e.g. distance_km)
        self.rpc_overrides: dict[int, dict] = {}
        self._ids = itertools.count(100)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.network_down:
            raise httpx.ConnectError("connection refused", request=request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"message": "boom"})

        path = request.url.path[len(REST_PREFIX):].strip("/")
        if request.method == "POST" and path.startswith("rpc/"):
            return self._rpc(path[len("rpc/"):], json.loads(request.content))
        if request.method == "POST":
            return self._insert(path, json.loads(request.content))
        return self._select(path, request.url.params)

    # ── Handlers ──────────────────────────────────────────────────────

    def _select(self, table: str, params: httpx.QueryParams) -> httpx.Response:
        rows = list(self.tables.get(table, []))
        order, limit = None, None
        for key, value in params.multi_items():
            if key == "select":
                continue
            if key == "order":
                order = value
            elif key == "limit":
                limit = int(value)
            elif value.startswith("eq."):
                rows = [r for r in rows if str(r.get(key)) == value[3:]]
            elif value.startswith("in.("):
                wanted = set(value[4:-1].split(","))
                rows = [r for r in rows if str(r.get(key)) in wanted]
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda r: r.get(column), reverse=direction == "desc")
        if limit is not None:
            rows = rows[:limit]
        return httpx.Response(200, json=rows)

    def _rpc(self, function: str, args: dict) -> httpx.Response:
        if function != "venues_within_radius":
            return httpx.Response(404, json={"message": "unknown function"})
        rows = []
        for venue in self.tables["venues"]:
            if args.get("venue_type") and venue["type"] != args["venue_type"]:
                continue
            if venue["latitude"] is not None:
                d = haversine_km(
                    args["search_lat"], args["search_lng"],
                    venue["latitude"], venue["longitude"],
                )
                if d > args["radius_km"]:
                    continue
            row = dict(venue)
            row.update(self.rpc_overrides.get(venue["id"], {}))
            rows.append(row)
        return httpx.Response(200, json=rows)

    def _insert(self, table: str, body: dict) -> httpx.Response:
        row = dict(body)
        row["id"] = next(self._ids)
        row["created_at"] = datetime.now(timezone.utc).isoformat()
        self.tables.setdefault(table, []).append(row)
        return httpx.Response(201, json=[row])


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def backend_client(
    fake_backend: FakeBackend,
) -> AsyncGenerator[BackendClient, None]:
    async with BackendClient(
        base_url=BACKEND_URL, api_key=API_KEY, transport=fake_backend.transport
    ) as client:
        yield client


@pytest.fixture
def venue_repo(backend_client: BackendClient) -> VenueRepository:
    return VenueRepository(backend_client)


@pytest.fixture
def review_repo(backend_client: BackendClient) -> ReviewRepository:
    return ReviewRepository(backend_client)


@pytest.fixture
def country_repo(backend_client: BackendClient) -> CountryRepository:
    return CountryRepository(backend_client)


@pytest.fixture
def city_repo(backend_client: BackendClient) -> CityRepository:
    return CityRepository(backend_client)
