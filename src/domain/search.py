"""
Client-side venue filtering.

Free-text search is not indexed on the backend, so the search term is
matched here, after the server has applied the city and type constraints.
A venue matches when its name **or** its address contains the term,
ignoring case.  Only the empty string disables the search; the term is
matched as given, surrounding whitespace included.

Complexity: O(n) per filter pass, input order preserved.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .entities import Venue
from .enums import VenueFilter, resolve_venue_type


def matches_search(venue: Venue, term: str) -> bool:
    if not term:
        return True
    needle = term.casefold()
    return needle in (venue.name or "").casefold() or needle in (
        venue.address or ""
    ).casefold()


def filter_by_search(venues: Iterable[Venue], term: str) -> list[Venue]:
    return [v for v in venues if matches_search(v, term)]


def filter_by_type(
    venues: Iterable[Venue], venue_type: Optional[VenueFilter]
) -> list[Venue]:
    """Keep venues of *venue_type*; ``None``/``all`` keeps everything.

    Used for views over already-resolved lists such as favorites.
    """
    wanted = resolve_venue_type(venue_type)
    if wanted is None:
        return list(venues)
    return [v for v in venues if v.type == wanted]
