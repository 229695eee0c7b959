"""
Application State Controller
============================

Owns the observable state a UI renders (selection, lists, loading, errors,
favorites) and decides which query runs for which user action.

Consistency rules
-----------------
* Changing the search text, the type filter or the selected city always
  refetches from the backend; filters are never re-applied to a list
  already in memory.
* **Last-request-wins**: each load channel (venues, nearby, ...) carries a
  generation counter.  A response whose generation is no longer the
  latest is dropped, so a slow earlier query can never overwrite the
  result of a later one.
* Query failures replace the affected list with an explicit ``error``;
  an empty list always means "nothing matched".
* Location failures go to ``location_error`` and leave city browsing
  untouched.
* The favorites set is mutated here only; the state exposes a frozen copy.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar

from src.domain.entities import (
    City,
    Coordinate,
    Country,
    QuerySpec,
    Review,
    ReviewDraft,
    Venue,
)
from src.domain.enums import BACK_NAVIGATION, PermissionStatus, Screen, VenueFilter
from src.domain.errors import (
    LocationError,
    PermissionDenied,
    QueryError,
    ValidationError,
)
from src.domain.search import filter_by_type
from src.infrastructure.location import LocationProvider
from src.infrastructure.repositories import (
    CityRepository,
    CountryRepository,
    ReviewRepository,
    VenueRepository,
)
from src.infrastructure.rest_client import BackendClient
from src.services.nearby import NearbyResult, NearbyVenuePipeline

logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[["AppState"], None]


@dataclass
class AppState:
    screen: Screen = Screen.COUNTRY

    countries: list[Country] = field(default_factory=list)
    cities: list[City] = field(default_factory=list)
    venues: list[Venue] = field(default_factory=list)
    nearby_venues: list[Venue] = field(default_factory=list)
    favorite_venues: list[Venue] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)

    selected_country: Optional[Country] = None
    selected_city: Optional[City] = None
    selected_venue: Optional[Venue] = None

    user_location: Optional[Coordinate] = None
    location_permission: Optional[PermissionStatus] = None
    location_error: Optional[str] = None

    loading: bool = False
    error: Optional[str] = None
    notice: Optional[str] = None

    search_text: str = ""
    active_filter: VenueFilter = VenueFilter.ALL
    favorites: frozenset[int] = frozenset()


class AppStateController:
    def __init__(
        self,
        countries: CountryRepository,
        cities: CityRepository,
        venues: VenueRepository,
        reviews: ReviewRepository,
        nearby: NearbyVenuePipeline,
    ):
        self.countries = countries
        self.cities = cities
        self.venues = venues
        self.reviews = reviews
        self.nearby = nearby

        self.state = AppState()
        self._favorites: set[int] = set()
        self._generations: dict[str, int] = defaultdict(int)
        self._in_flight: set[str] = set()
        self._listeners: list[Listener] = []

    @classmethod
    def create(
        cls, client: BackendClient, location: LocationProvider
    ) -> AppStateController:
        venues = VenueRepository(client)
        return cls(
            countries=CountryRepository(client),
            cities=CityRepository(client),
            venues=venues,
            reviews=ReviewRepository(client),
            nearby=NearbyVenuePipeline(location, venues),
        )

    # ── Observation ───────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    @property
    def query_spec(self) -> QuerySpec:
        city = self.state.selected_city
        return QuerySpec(
            city_id=city.id if city else None,
            search_text=self.state.search_text,
            venue_type=self.state.active_filter,
        )

    # ── Browsing ──────────────────────────────────────────────────────

    async def load_countries(self) -> None:
        await self._load(
            "countries",
            self.countries.list_all(),
            lambda rows: self._update(countries=rows),
            lambda: self._update(countries=[]),
            "countries",
        )

    async def load_cities(self, country_id: int) -> None:
        await self._load(
            "cities",
            self.cities.list_by_country(country_id),
            lambda rows: self._update(cities=rows),
            lambda: self._update(cities=[]),
            "cities",
        )

    async def refresh_venues(self) -> None:
        """Refetch the venue list for the current city, search and filter."""
        spec = self.query_spec
        await self._load(
            "venues",
            self.venues.query_by_city(spec),
            lambda rows: self._update(venues=rows),
            lambda: self._update(venues=[]),
            "venues",
        )

    async def navigate(self, screen: Screen, data: Any = None) -> None:
        screen = Screen(screen)
        self._update(screen=screen)
        if screen == Screen.CITY and data is not None:
            self._update(selected_country=data)
            await self.load_cities(data.id)
        elif screen == Screen.VENUES and data is not None:
            self._update(selected_city=data)
            await self.refresh_venues()
        elif screen == Screen.FAVORITES:
            await self.load_favorite_venues()

    def go_back(self) -> None:
        previous = BACK_NAVIGATION.get(self.state.screen)
        if previous is not None:
            self._update(screen=previous)

    async def set_search_text(self, text: str) -> None:
        self._update(search_text=text or "")
        if self.state.selected_city is not None:
            await self.refresh_venues()

    async def set_filter(self, venue_filter: VenueFilter) -> None:
        self._update(active_filter=VenueFilter(venue_filter))
        if self.state.selected_city is not None:
            await self.refresh_venues()

    # ── Favorites ─────────────────────────────────────────────────────

    def is_favorite(self, venue_id: int) -> bool:
        return venue_id in self._favorites

    def add_favorite(self, venue_id: int) -> None:
        self._favorites.add(venue_id)
        self._publish_favorites()

    def remove_favorite(self, venue_id: int) -> None:
        self._favorites.discard(venue_id)
        self._publish_favorites()

    def toggle_favorite(self, venue_id: int) -> bool:
        """Flip membership of *venue_id*; returns whether it is now a favorite."""
        if venue_id in self._favorites:
            self.remove_favorite(venue_id)
            return False
        self.add_favorite(venue_id)
        return True

    async def load_favorite_venues(self) -> None:
        await self._load(
            "favorites",
            self.venues.query_by_ids(self._favorites),
            lambda rows: self._update(
                favorite_venues=[v for v in rows if v.id in self._favorites]
            ),
            lambda: self._update(favorite_venues=[]),
            "favorites",
        )

    def favorite_venues_by_type(
        self, venue_filter: Optional[VenueFilter] = None
    ) -> list[Venue]:
        return filter_by_type(self.state.favorite_venues, venue_filter)

    # ── Nearby ────────────────────────────────────────────────────────

    async def request_location(
        self, radius_km: Optional[float] = None
    ) -> Optional[NearbyResult]:
        """Locate the device and load venues around it.

        Returns the result, or ``None`` when the lookup failed or was
        superseded by a newer request.
        """
        token = self._begin("nearby")
        self._update(location_error=None, notice=None)
        result: Optional[NearbyResult] = None
        try:
            result = await self.nearby.find_nearby(
                radius_km, self.state.active_filter
            )
            changes: dict[str, Any] = {
                "user_location": result.origin,
                "location_permission": PermissionStatus.GRANTED,
                "nearby_venues": result.venues,
                "notice": result.summary(),
            }
        except LocationError as exc:
            changes = {"location_error": str(exc)}
            if isinstance(exc, PermissionDenied):
                changes["location_permission"] = PermissionStatus.DENIED
        except (QueryError, ValidationError) as exc:
            changes = {
                "nearby_venues": [],
                "error": f"Failed to find nearby venues: {exc}",
            }
        finally:
            current = self._finish("nearby", token)

        if not current:
            return None
        self._update(**changes)
        return result

    # ── Reviews ───────────────────────────────────────────────────────

    async def open_reviews(self, venue: Venue) -> None:
        self._update(selected_venue=venue, reviews=[])
        await self._load(
            "reviews",
            self.reviews.list_for_venue(venue.id),
            lambda rows: self._update(reviews=rows),
            lambda: self._update(reviews=[]),
            "reviews",
        )

    async def submit_review(self, draft: ReviewDraft) -> Review:
        """Submit *draft*; errors propagate so the user can retry."""
        review = await self.reviews.submit(draft)
        if self.state.selected_city is not None:
            await self.refresh_venues()
        venue = self.state.selected_venue
        if venue is not None and venue.id == draft.venue_id:
            await self.open_reviews(venue)
        return review

    # ── Internals ─────────────────────────────────────────────────────

    def _update(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self.state, name, value)
        for listener in list(self._listeners):
            listener(self.state)

    def _publish_favorites(self) -> None:
        favorites = frozenset(self._favorites)
        self._update(
            favorites=favorites,
            favorite_venues=[
                v for v in self.state.favorite_venues if v.id in favorites
            ],
        )

    def _begin(self, channel: str) -> int:
        self._generations[channel] += 1
        self._in_flight.add(channel)
        self._update(loading=True, error=None)
        return self._generations[channel]

    def _finish(self, channel: str, token: int) -> bool:
        """Close out a request; ``False`` means the response is stale."""
        if token != self._generations[channel]:
            logger.debug(
                "Discarding stale %s response (generation %d < %d)",
                channel,
                token,
                self._generations[channel],
            )
            return False
        self._in_flight.discard(channel)
        self._update(loading=bool(self._in_flight))
        return True

    async def _load(
        self,
        channel: str,
        fetch: Awaitable[T],
        apply: Callable[[T], None],
        clear: Callable[[], None],
        what: str,
    ) -> None:
        token = self._begin(channel)
        failure: Optional[QueryError] = None
        try:
            result = await fetch
        except QueryError as exc:
            failure = exc
        finally:
            current = self._finish(channel, token)

        if not current:
            return
        if failure is not None:
            logger.warning("Failed to load %s: %s", what, failure)
            clear()
            self._update(error=f"Failed to load {what}: {failure}")
            return
        apply(result)
