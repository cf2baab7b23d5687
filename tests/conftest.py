"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production ORM models are portable, so
no test-only mirror models are needed.  Outbound providers are replaced by
small fakes through FastAPI dependency overrides.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from src.domain.entities import (
    DriverInfo,
    GeocodeResult,
    GeoPoint,
    Ride,
    RouteDistance,
    SeatInfo,
)
from src.domain.weather import WeatherSnapshot
from src.infrastructure.database import (
    create_tables,
    drop_tables,
    make_engine,
    make_session_factory,
)


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = make_engine(TEST_DB_URL, poolclass=StaticPool)
TestSessionFactory = make_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    await create_tables(test_engine)

    async with TestSessionFactory() as session:
        yield session

    await drop_tables(test_engine)


# ── Provider fakes ────────────────────────────────────────────────────


CALM = WeatherSnapshot(
    temperature=24.0,
    precipitation_mm_per_hour=0.0,
    weather_code=1,
    wind_speed_kmh=8.0,
    visibility_meters=10_000.0,
)

STORMY = WeatherSnapshot(
    temperature=21.0,
    precipitation_mm_per_hour=6.0,
    weather_code=95,
    wind_speed_kmh=55.0,
    visibility_meters=800.0,
)


class FakeWeatherFetcher:
    """Returns a snapshot per (rounded) latitude; unknown points yield ``None``."""

    def __init__(self, by_lat: Optional[dict[float, Optional[WeatherSnapshot]]] = None):
        self.by_lat = by_lat or {}
        self.calls: list[tuple[float, float]] = []

    async def fetch_weather(self, lat: float, lng: float) -> Optional[WeatherSnapshot]:
        self.calls.append((lat, lng))
        return self.by_lat.get(round(lat, 2))


class FakeGeocoder:
    def __init__(self, places: Optional[dict[str, GeocodeResult]] = None):
        self.places = {k.lower(): v for k, v in (places or {}).items()}

    async def geocode(self, place: str) -> Optional[GeocodeResult]:
        return self.places.get(place.strip().lower())


class FakeRouter:
    def __init__(self, result: Optional[RouteDistance] = None):
        self.result = result

    async def route(self, origin_lat, origin_lng, dest_lat, dest_lng):
        return self.result


# ── Domain builders ───────────────────────────────────────────────────


PICKUP = GeoPoint("Connaught Place", 28.60, 77.20)
DROP = GeoPoint("Lajpat Nagar", 28.55, 77.25)


def make_ride(
    ride_id: int = 1,
    start: GeoPoint = PICKUP,
    destination: GeoPoint = DROP,
    date: str = "2026-10-20",
    time: str = "09:00",
    total: int = 4,
    available: int = 3,
) -> Ride:
    return Ride(
        id=ride_id,
        driver=DriverInfo(name=f"Driver {ride_id}"),
        start=start,
        destination=destination,
        date=date,
        time=time,
        seats=SeatInfo(total=total, available=available),
    )


@pytest.fixture
def pickup() -> GeoPoint:
    return PICKUP


@pytest.fixture
def drop() -> GeoPoint:
    return DROP
