"""
FastAPI application factory.

* Registers routes for rides, weather, locations and admin.
* Opens / closes the shared outbound HTTP client and provider caches via
  lifespan events.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.dependencies import build_cache, build_providers
from src.api.middleware import limiter
from src.api.routes import admin, locations, rides, weather
from src.config import settings
from src.domain.entities import InvalidRideRequest
from src.infrastructure.redis_client import close_redis

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create provider clients on startup; close them on shutdown."""
    async with httpx.AsyncClient(
        headers={"User-Agent": "RideMate/1.0"}
    ) as client:
        cache = await build_cache()
        app.state.providers = build_providers(client, cache)
        logger.info("Provider clients ready (cache=%s)", settings.cache_backend)
        yield
    await close_redis()
    logger.info("Provider clients closed")


async def _invalid_ride_request_handler(request: Request, exc: InvalidRideRequest):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="RideMate Matching API",
        description=(
            "Matches riders to carpool rides in perfect / good / nearby "
            "tiers and flags weather-based surcharges from current "
            "conditions at both ends of a ride."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(InvalidRideRequest, _invalid_ride_request_handler)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(weather.router, prefix="/api/v1")
    app.include_router(locations.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
