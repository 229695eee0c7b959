"""
FastAPI application factory.

* Registers routes for the country/city catalog, venues and admin.
* Opens / closes the shared backend client via lifespan events.
* Maps backend and validation failures onto HTTP errors.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import admin, catalog, venues
from src.config import settings
from src.domain.errors import (
    LocationError,
    QueryError,
    ServerError,
    ValidationError,
)
from src.infrastructure.rest_client import BackendClient

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the backend client on startup; close it on shutdown."""
    app.state.backend = BackendClient()
    logger.info("Backend client ready (%s)", settings.backend_url)
    yield
    await app.state.backend.aclose()


async def _query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
    detail = str(exc)
    if isinstance(exc, ServerError):
        detail = f"Upstream returned HTTP {exc.status_code}"
    return JSONResponse(status_code=502, content={"detail": detail})


async def _validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _location_error_handler(
    request: Request, exc: LocationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Halal Finder API",
        description=(
            "Browse mosques and halal restaurants by country and city, "
            "search and filter them, find venues near a location, and "
            "read or submit reviews."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(QueryError, _query_error_handler)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(LocationError, _location_error_handler)

    # Routers
    app.include_router(catalog.router, prefix="/api/v1")
    app.include_router(venues.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
