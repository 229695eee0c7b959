"""
Distance annotation and ordering for nearby-venue results.

Rules
-----
* A distance already supplied by the server wins over a local recompute.
* Venues without coordinates keep ``distance_km = None`` and sort last
  (treated as +inf for ordering only).
* The sort is stable, so ties keep the server's order.
"""

from __future__ import annotations

import math

from .distance import distance_km
from .entities import Coordinate, Venue


def annotate_distances(venues: list[Venue], origin: Coordinate) -> list[Venue]:
    for venue in venues:
        if venue.distance_km is None and venue.location is not None:
            venue.distance_km = distance_km(origin, venue.location)
    return venues


def sort_key(venue: Venue) -> float:
    return math.inf if venue.distance_km is None else venue.distance_km


def sort_by_distance(venues: list[Venue]) -> list[Venue]:
    return sorted(venues, key=sort_key)
