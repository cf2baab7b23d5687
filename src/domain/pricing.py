"""
Fare Pricing Engine
===================

Formula
-------
Operating = Distance / Efficiency x Fuel_Price + Distance x Wear + Minutes x Driver_Rate
Driver    = Operating x (1 + Margin)
Total     = Driver x (1 + Platform_Fee)
Per rider = max(Total / Seats, Min_Fare)

* **Margin**: 20 %, reduced to 10 % for trips over 500 km.
* **Platform_Fee**: 10 % of the driver's compensation.

When no road route is available the distance falls back to the Haversine
distance (at least 0.5 km) driven at 40 km/h.

Weather does not change the amount here: the surcharge flag travels with
the quote and is priced elsewhere.

Complexity: O(1) per price calculation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .distance import point_distance_km
from .entities import GeoPoint


@dataclass(frozen=True)
class FareBreakdown:
    distance_km: float
    duration_minutes: int
    cost: float
    price_per_rider: float
    driver_earning: float
    platform_fee: float
    fallback: bool = False


def _money(value: float) -> float:
    return round(value, 2)


class PricingEngine:
    """High-level API used by the quote service and the API layer."""

    PROFIT_MARGIN = 0.20
    REDUCED_PROFIT_MARGIN = 0.10
    LONG_TRIP_THRESHOLD_KM = 500.0
    PLATFORM_FEE_RATE = 0.10
    FALLBACK_SPEED_KMPH = 40.0
    MIN_FALLBACK_DISTANCE_KM = 0.5

    def __init__(
        self,
        fuel_price_per_litre: float = 100.0,
        fuel_efficiency_km_per_litre: float = 15.0,
        wear_cost_per_km: float = 5.0,
        driver_rate_per_minute: float = 2.0,
        min_fare_per_rider: float = 50.0,
    ):
        self.fuel_price_per_litre = fuel_price_per_litre
        self.fuel_efficiency_km_per_litre = fuel_efficiency_km_per_litre
        self.wear_cost_per_km = wear_cost_per_km
        self.driver_rate_per_minute = driver_rate_per_minute
        self.min_fare_per_rider = min_fare_per_rider

    def operating_cost(self, distance_km: float, duration_minutes: float) -> float:
        fuel = distance_km / self.fuel_efficiency_km_per_litre * self.fuel_price_per_litre
        wear = distance_km * self.wear_cost_per_km
        driver_time = duration_minutes * self.driver_rate_per_minute
        return fuel + wear + driver_time

    @classmethod
    def profit_margin(cls, distance_km: float) -> float:
        if distance_km > cls.LONG_TRIP_THRESHOLD_KM:
            return cls.REDUCED_PROFIT_MARGIN
        return cls.PROFIT_MARGIN

    def calculate(
        self,
        distance_km: float,
        duration_minutes: int,
        seats: int = 1,
        fallback: bool = False,
    ) -> FareBreakdown:
        riders = max(1, seats)
        driver_total = self.operating_cost(distance_km, duration_minutes) * (
            1 + self.profit_margin(distance_km)
        )
        platform_fee = driver_total * self.PLATFORM_FEE_RATE
        total = driver_total + platform_fee
        per_rider = max(total / riders, self.min_fare_per_rider)

        return FareBreakdown(
            distance_km=_money(distance_km),
            duration_minutes=duration_minutes,
            cost=_money(total),
            price_per_rider=_money(per_rider),
            driver_earning=_money(driver_total),
            platform_fee=_money(platform_fee),
            fallback=fallback,
        )

    def calculate_for_route(
        self, distance_meters: float, duration_seconds: float, seats: int = 1
    ) -> FareBreakdown:
        duration_minutes = max(1, round(duration_seconds / 60))
        return self.calculate(distance_meters / 1000, duration_minutes, seats)

    def estimate_without_route(
        self, start: GeoPoint, dest: GeoPoint, seats: int = 1
    ) -> FareBreakdown:
        """Straight-line fallback used when the routing provider is unavailable."""
        distance = point_distance_km(start, dest)
        if math.isinf(distance):
            raise ValueError("Cannot estimate a fare without valid coordinates")
        distance = max(distance, self.MIN_FALLBACK_DISTANCE_KM)
        duration = max(1, round(distance / self.FALLBACK_SPEED_KMPH * 60))
        return self.calculate(distance, duration, seats, fallback=True)
