"""Fare quotes for a prospective ride: road distance, price split and weather."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from src.domain.entities import GeoPoint, RouteDistance
from src.domain.pricing import FareBreakdown, PricingEngine
from src.domain.weather import RideWeatherResult

from .weather_surcharge import WeatherSurchargeCalculator

logger = logging.getLogger(__name__)


class RouteProvider(Protocol):
    async def route(
        self,
        origin_lat: float,
        origin_lng: float,
        dest_lat: float,
        dest_lng: float,
    ) -> Optional[RouteDistance]: ...


@dataclass(frozen=True)
class RideQuote:
    fare: FareBreakdown
    weather: RideWeatherResult


class RideQuoteService:
    def __init__(
        self,
        router: RouteProvider,
        weather: WeatherSurchargeCalculator,
        pricing: PricingEngine,
    ):
        self.router = router
        self.weather = weather
        self.pricing = pricing

    async def quote(self, start: GeoPoint, dest: GeoPoint, seats: int = 1) -> RideQuote:
        route, weather = await asyncio.gather(
            self.router.route(start.lat, start.lng, dest.lat, dest.lng),
            self.weather.assess_ride_weather(start, dest),
        )

        if route is None:
            logger.info("No road route for quote; using straight-line estimate")
            fare = self.pricing.estimate_without_route(start, dest, seats)
        else:
            fare = self.pricing.calculate_for_route(
                route.distance_meters, route.duration_seconds, seats
            )
        return RideQuote(fare=fare, weather=weather)
