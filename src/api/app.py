"""
FastAPI application factory.

* Registers routes for trips, bookings, reviews, favorites and admin.
* Maps the domain error taxonomy onto JSON error responses.
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
from src.api.routes import admin, bookings, favorites, reviews, trips
from src.config import settings
from src.domain.errors import CarpoolError, InfrastructureError
from src.infrastructure.database import engine
from src.infrastructure.redis_client import close_redis

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release pooled Redis and database connections on shutdown."""
    yield
    await close_redis()
    await engine.dispose()


# ── Error handlers ────────────────────────────────────────────────────


async def carpool_error_handler(request: Request, exc: CarpoolError) -> JSONResponse:
    if isinstance(exc, InfrastructureError):
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message
        )
        if settings.is_production:
            detail = exc.default_message
        elif exc.__cause__ is not None:
            detail = f"{exc.message}: {exc.__cause__}"
        else:
            detail = exc.message
    else:
        logger.warning(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.code,
            exc.message,
        )
        detail = exc.message
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.code, "detail": detail}
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(
        status_code=500,
        content={"error": InfrastructureError.code, "detail": detail},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Car-Sharing Marketplace API",
        description=(
            "Drivers post trips, passengers book seats and review drivers "
            "afterwards.  Seat inventory is updated with guarded atomic "
            "statements so concurrent bookings never oversell a trip."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(CarpoolError, carpool_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Routers
    app.include_router(trips.router, prefix="/api/v1")
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(reviews.router, prefix="/api/v1")
    app.include_router(favorites.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
