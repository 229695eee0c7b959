"""
Error taxonomy shared by the query client, the location provider and the
application state controller.

Query errors and location errors are kept in separate branches so callers
can isolate a failed location lookup from city browsing.
"""

from __future__ import annotations

from typing import Optional


class HalalFinderError(Exception):
    """Base class for every error raised by this package."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


# ── Query errors ──────────────────────────────────────────────────────


class QueryError(HalalFinderError):
    user_message = "Could not reach the venue service."


class NetworkError(QueryError):
    """Transport failure: no response was received."""

    user_message = "Network error. Check your connection and try again."


class ServerError(QueryError):
    """The backend answered with a non-success status."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}".rstrip(": "))


# ── Location errors ───────────────────────────────────────────────────


class LocationError(HalalFinderError):
    user_message = "Unable to get your current location."


class PermissionDenied(LocationError):
    user_message = (
        "Location permission denied. Please allow location access "
        "in your device settings."
    )


class PositionUnavailable(LocationError):
    user_message = "Location information is unavailable."


class LocationTimeout(LocationError):
    user_message = "Location request timed out. Please try again."


class LocationUnknownError(LocationError):
    user_message = "An unknown error occurred while getting location."


# ── Input errors ──────────────────────────────────────────────────────


class ValidationError(HalalFinderError):
    user_message = "Please check the information you entered."
