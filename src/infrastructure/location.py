"""
Device location provider.

Lifecycle (per request)
-----------------------
UNREQUESTED -> REQUESTING -> GRANTED | DENIED
GRANTED -> FETCHING -> FIXED | FAILED

A new request always restarts at REQUESTING.  Permission is asked only
until it has been granted once; a platform error reporting
PERMISSION_DENIED revokes it again.

The platform itself is an external collaborator described by
``LocationPlatform``.  Its error codes are mapped onto the package's
``LocationError`` taxonomy.  No retries: the caller decides whether to
ask again.  Overlapping callers are served one at a time: each waits for
the previous request to settle before restarting the lifecycle.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from src.config import settings
from src.domain.entities import Coordinate, InvalidStateTransition
from src.domain.enums import LOCATION_TRANSITIONS, LocationState, PositionErrorCode
from src.domain.errors import (
    LocationError,
    LocationTimeout,
    LocationUnknownError,
    PermissionDenied,
    PositionUnavailable,
)

logger = logging.getLogger(__name__)

_ERROR_BY_CODE: dict[int, type[LocationError]] = {
    PositionErrorCode.PERMISSION_DENIED: PermissionDenied,
    PositionErrorCode.POSITION_UNAVAILABLE: PositionUnavailable,
    PositionErrorCode.TIMEOUT: LocationTimeout,
}


class PositionError(Exception):
    """Raised by a platform when a position fix fails."""

    def __init__(self, code: int, message: str = ""):
        self.code = code
        super().__init__(message or f"position error {code}")


class LocationPlatform(Protocol):
    async def request_permission(self) -> bool: ...

    async def get_position(self, *, timeout: float, max_age: float) -> Coordinate: ...


class StaticLocationPlatform:
    """Serves a fix obtained elsewhere, e.g. coordinates sent by a client."""

    def __init__(
        self, coordinate: Optional[Coordinate], permission_granted: bool = True
    ):
        self.coordinate = coordinate
        self.permission_granted = permission_granted

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def get_position(self, *, timeout: float, max_age: float) -> Coordinate:
        if self.coordinate is None:
            raise PositionError(PositionErrorCode.POSITION_UNAVAILABLE)
        return self.coordinate


class LocationProvider:
    def __init__(
        self,
        platform: Optional[LocationPlatform],
        timeout_seconds: Optional[float] = None,
        max_age_seconds: Optional[float] = None,
    ):
        self.platform = platform
        self.timeout = timeout_seconds or settings.location_timeout_seconds
        self.max_age = (
            settings.location_max_age_seconds
            if max_age_seconds is None
            else max_age_seconds
        )
        self.state = LocationState.UNREQUESTED
        self.last_error: Optional[LocationError] = None
        self._permission_granted = False
        self._lock = asyncio.Lock()

    @property
    def is_available(self) -> bool:
        return self.platform is not None

    def transition_to(self, new_state: LocationState) -> None:
        """Move to *new_state* if the transition is legal, else raise."""
        allowed = LOCATION_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.state} to {new_state}"
            )
        self.state = new_state

    async def get_current_location(self) -> Coordinate:
        """Return a single fix or raise a ``LocationError``."""
        if self.platform is None:
            raise PositionUnavailable("Geolocation is not supported by this device.")

        async with self._lock:
            return await self._locate()

    # ── Internals ─────────────────────────────────────────────────────

    async def _locate(self) -> Coordinate:
        self.transition_to(LocationState.REQUESTING)
        if not await self._ensure_permission():
            self.transition_to(LocationState.DENIED)
            self.last_error = PermissionDenied()
            raise self.last_error
        self.transition_to(LocationState.GRANTED)

        self.transition_to(LocationState.FETCHING)
        try:
            coordinate = await asyncio.wait_for(
                self.platform.get_position(timeout=self.timeout, max_age=self.max_age),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            self._fail(LocationTimeout())
            raise self.last_error from exc
        except PositionError as exc:
            if exc.code == PositionErrorCode.PERMISSION_DENIED:
                self._permission_granted = False
            self._fail(_ERROR_BY_CODE.get(exc.code, LocationUnknownError)())
            raise self.last_error from exc
        except Exception as exc:
            logger.warning("Location platform failed", exc_info=True)
            self._fail(LocationUnknownError())
            raise self.last_error from exc

        self.transition_to(LocationState.FIXED)
        self.last_error = None
        logger.debug("Location fix %s", coordinate.format())
        return coordinate

    async def _ensure_permission(self) -> bool:
        if not self._permission_granted:
            try:
                self._permission_granted = bool(
                    await self.platform.request_permission()
                )
            except Exception:
                logger.warning("Location permission request failed", exc_info=True)
                self._permission_granted = False
        return self._permission_granted

    def _fail(self, error: LocationError) -> None:
        self.transition_to(LocationState.FAILED)
        self.last_error = error
        logger.info("Location fix failed: %s", error)
