"""FastAPI dependency injection helpers."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.domain.matching import MatchThresholds
from src.domain.pricing import PricingEngine
from src.infrastructure.cache import InMemoryTTLCache, RedisTTLCache, TTLCache
from src.infrastructure.database import async_session_factory
from src.infrastructure.geocoding_client import OpenMeteoGeocoder
from src.infrastructure.redis_client import get_redis
from src.infrastructure.routing_client import OsrmRoutingClient
from src.infrastructure.weather_client import OpenMeteoWeatherClient
from src.services.ride_quotes import RideQuoteService
from src.services.weather_surcharge import WeatherSurchargeCalculator


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── External providers (built once per app in the lifespan) ──────────


@dataclass
class Providers:
    weather: OpenMeteoWeatherClient
    geocoder: OpenMeteoGeocoder
    router: OsrmRoutingClient


async def build_cache() -> TTLCache:
    if settings.cache_backend == "redis":
        return RedisTTLCache(await get_redis())
    return InMemoryTTLCache(max_entries=settings.cache_max_entries)


def build_providers(client: httpx.AsyncClient, cache: TTLCache) -> Providers:
    return Providers(
        weather=OpenMeteoWeatherClient(
            client,
            base_url=settings.weather_api_url,
            timeout_seconds=settings.weather_timeout_seconds,
            cache=cache,
            cache_ttl_seconds=settings.weather_cache_ttl_seconds,
        ),
        geocoder=OpenMeteoGeocoder(
            client,
            base_url=settings.geocoding_api_url,
            timeout_seconds=settings.geocoding_timeout_seconds,
            cache=cache,
            cache_ttl_seconds=settings.geocode_cache_ttl_seconds,
        ),
        router=OsrmRoutingClient(
            client,
            base_url=settings.routing_api_url,
            timeout_seconds=settings.routing_timeout_seconds,
            max_retries=settings.routing_max_retries,
            retry_delay_seconds=settings.routing_retry_delay_seconds,
        ),
    )


def get_weather_fetcher(request: Request) -> OpenMeteoWeatherClient:
    return request.app.state.providers.weather


def get_geocoder(request: Request) -> OpenMeteoGeocoder:
    return request.app.state.providers.geocoder


def get_router(request: Request) -> OsrmRoutingClient:
    return request.app.state.providers.router


def get_weather_calculator(
    fetcher=Depends(get_weather_fetcher),
) -> WeatherSurchargeCalculator:
    return WeatherSurchargeCalculator(fetcher)


def get_pricing_engine() -> PricingEngine:
    return PricingEngine(
        fuel_price_per_litre=settings.fuel_price_per_litre,
        fuel_efficiency_km_per_litre=settings.fuel_efficiency_km_per_litre,
        wear_cost_per_km=settings.wear_cost_per_km,
        driver_rate_per_minute=settings.driver_rate_per_minute,
        min_fare_per_rider=settings.min_fare_per_rider,
    )


def get_quote_service(
    router=Depends(get_router),
    calculator: WeatherSurchargeCalculator = Depends(get_weather_calculator),
    pricing: PricingEngine = Depends(get_pricing_engine),
) -> RideQuoteService:
    return RideQuoteService(router, calculator, pricing)


def get_match_thresholds() -> MatchThresholds:
    return MatchThresholds(
        perfect_radius_km=settings.perfect_radius_km,
        perfect_time_window_minutes=settings.perfect_time_window_minutes,
        good_radius_km=settings.good_radius_km,
        good_time_window_minutes=settings.good_time_window_minutes,
    )
