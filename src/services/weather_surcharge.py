"""
Weather Surcharge Calculator
============================

For a ride's two endpoints:

1. Fetch current conditions at both ends concurrently (``asyncio.gather``).
   Each fetch has its own timeout; a slow side yields ``None`` without cancelling the other.
2. Classify each side (``src.domain.weather.classify_weather``).
3. ``hasBadWeather`` = either side bad; the surcharge flag mirrors it.

Pricing must never be blocked by the weather provider: if the fan-out
raises anything unexpected the fully-defaulted "Unknown / not bad" result
is returned instead.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from src.domain.entities import GeoPoint
from src.domain.weather import (
    UNKNOWN_RIDE_WEATHER,
    RideWeatherResult,
    WeatherSnapshot,
    classify_weather,
)

logger = logging.getLogger(__name__)


class WeatherFetcher(Protocol):
    async def fetch_weather(
        self, lat: float, lng: float
    ) -> Optional[WeatherSnapshot]: ...


class WeatherSurchargeCalculator:
    def __init__(self, fetcher: WeatherFetcher):
        self.fetcher = fetcher

    async def assess_ride_weather(
        self, start: GeoPoint, dest: GeoPoint
    ) -> RideWeatherResult:
        try:
            start_snapshot, dest_snapshot = await asyncio.gather(
                self.fetcher.fetch_weather(start.lat, start.lng),
                self.fetcher.fetch_weather(dest.lat, dest.lng),
            )
            result = RideWeatherResult(
                start_weather=classify_weather(start_snapshot),
                dest_weather=classify_weather(dest_snapshot),
            )
        except Exception:
            logger.exception(
                "Weather assessment failed for %s -> %s; using defaults",
                start.label or (start.lat, start.lng),
                dest.label or (dest.lat, dest.lng),
            )
            return UNKNOWN_RIDE_WEATHER

        if result.has_bad_weather:
            logger.info(
                "Bad weather on ride %s -> %s (start=%s, dest=%s)",
                start.label, dest.label,
                result.start_weather.condition, result.dest_weather.condition,
            )
        return result
