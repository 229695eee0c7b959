"""Domain enumerations and state-transition rules."""

from __future__ import annotations

import enum
from typing import Optional, Union


class VenueType(str, enum.Enum):
    MOSQUE = "mosque"
    RESTAURANT = "restaurant"


class VenueFilter(str, enum.Enum):
    ALL = "all"
    MOSQUE = "mosque"
    RESTAURANT = "restaurant"


def resolve_venue_type(
    value: Union[VenueFilter, VenueType, str, None],
) -> Optional[VenueType]:
    """Map a UI filter value onto the server-side type constraint.

    ``None`` and ``"all"`` mean no type filter.
    """
    if value is None:
        return None
    raw = value.value if isinstance(value, enum.Enum) else str(value).lower()
    if raw == VenueFilter.ALL.value:
        return None
    return VenueType(raw)


class CountryStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"


class Screen(str, enum.Enum):
    COUNTRY = "country"
    CITY = "city"
    VENUES = "venues"
    MAP = "map"
    FAVORITES = "favorites"


# Back navigation: current screen -> previous screen
BACK_NAVIGATION: dict[Screen, Screen] = {
    Screen.VENUES: Screen.CITY,
    Screen.MAP: Screen.CITY,
    Screen.CITY: Screen.COUNTRY,
}


class LocationState(str, enum.Enum):
    UNREQUESTED = "UNREQUESTED"
    REQUESTING = "REQUESTING"
    GRANTED = "GRANTED"
    DENIED = "DENIED"
    FETCHING = "FETCHING"
    FIXED = "FIXED"
    FAILED = "FAILED"


# State machine: maps current state -> set of valid next states.
# Every state may restart at REQUESTING; a new request always starts over.
LOCATION_TRANSITIONS: dict[LocationState, set[LocationState]] = {
    LocationState.UNREQUESTED: {LocationState.REQUESTING},
    LocationState.REQUESTING: {
        LocationState.GRANTED,
        LocationState.DENIED,
        LocationState.REQUESTING,
    },
    LocationState.GRANTED: {LocationState.FETCHING, LocationState.REQUESTING},
    LocationState.DENIED: {LocationState.REQUESTING},
    LocationState.FETCHING: {
        LocationState.FIXED,
        LocationState.FAILED,
        LocationState.REQUESTING,
    },
    LocationState.FIXED: {LocationState.REQUESTING},
    LocationState.FAILED: {LocationState.REQUESTING},
}


class PermissionStatus(str, enum.Enum):
    GRANTED = "granted"
    DENIED = "denied"


class PositionErrorCode(enum.IntEnum):
    """Error codes reported by platform geolocation APIs."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3
