"""
Open-Meteo current-conditions client.

The raw payload is validated with pydantic before it becomes a
``WeatherSnapshot``; any timeout, HTTP error or malformed body yields
``None`` so callers can fail open.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from src.domain.weather import DEFAULT_VISIBILITY_M, WeatherSnapshot

from .cache import TTLCache

logger = logging.getLogger(__name__)

CURRENT_FIELDS = "temperature_2m,precipitation,weather_code,wind_speed_10m,visibility"


class _CurrentConditions(BaseModel):
    temperature_2m: Optional[float] = None
    precipitation: Optional[float] = None
    weather_code: Optional[int] = None
    wind_speed_10m: Optional[float] = None
    visibility: Optional[float] = None
    time: Optional[str] = None


class _ForecastPayload(BaseModel):
    current: _CurrentConditions


class _CachedSnapshot(BaseModel):
    """Shape of a cached ``WeatherSnapshot``; anything else is a cache miss."""

    model_config = ConfigDict(extra="forbid")

    temperature: Optional[float] = None
    precipitation_mm_per_hour: float
    weather_code: Optional[int] = None
    wind_speed_kmh: float
    visibility_meters: float


def snapshot_from_payload(payload: object) -> WeatherSnapshot:
    """Raises ``ValidationError`` if the ``current`` block is missing or malformed."""
    current = _ForecastPayload.model_validate(payload).current
    return WeatherSnapshot(
        temperature=current.temperature_2m,
        precipitation_mm_per_hour=(
            current.precipitation if current.precipitation is not None else 0.0
        ),
        weather_code=current.weather_code,
        wind_speed_kmh=(
            current.wind_speed_10m if current.wind_speed_10m is not None else 0.0
        ),
        visibility_meters=(
            current.visibility
            if current.visibility is not None
            else DEFAULT_VISIBILITY_M
        ),
    )


def weather_cache_key(lat: float, lng: float, moment: datetime) -> str:
    hour = moment.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)
    return f"weather:{lat:.2f},{lng:.2f},{hour.isoformat()}"


class OpenMeteoWeatherClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://api.open-meteo.com/v1/forecast",
        timeout_seconds: float = 5.0,
        cache: Optional[TTLCache] = None,
        cache_ttl_seconds: float = 300.0,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.client = client
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self._now = now

    async def fetch_weather(self, lat: float, lng: float) -> Optional[WeatherSnapshot]:
        """
        Current conditions at ``(lat, lng)``, or ``None`` on any provider failure.

        The timeout covers the cache lookup as well as the HTTP call.
        """
        try:
            return await asyncio.wait_for(
                self._lookup(lat, lng), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Weather lookup timed out after %.1fs for (%s, %s)",
                self.timeout_seconds, lat, lng,
            )
            return None
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.warning("Weather API error for (%s, %s): %s", lat, lng, exc)
            return None

    async def _lookup(self, lat: float, lng: float) -> WeatherSnapshot:
        key = weather_cache_key(lat, lng, self._now())
        cached = await self._cached(key)
        if cached is not None:
            return cached

        snapshot = await self._request(lat, lng)
        if self.cache is not None:
            await self.cache.set(key, asdict(snapshot), self.cache_ttl_seconds)
        return snapshot

    async def _cached(self, key: str) -> Optional[WeatherSnapshot]:
        if self.cache is None:
            return None
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            entry = _CachedSnapshot.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding unreadable weather cache entry %s", key)
            return None
        logger.debug("Weather cache hit for %s", key)
        return WeatherSnapshot(**entry.model_dump())

    async def _request(self, lat: float, lng: float) -> WeatherSnapshot:
        response = await self.client.get(
            self.base_url,
            params={
                "latitude": lat,
                "longitude": lng,
                "current": CURRENT_FIELDS,
                "timezone": "auto",
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return snapshot_from_payload(response.json())
