"""
Weather surcharge tests.

Covers the calculator's concurrent fan-out and fail-open behaviour with a
fake fetcher, and the Open-Meteo client against ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from src.domain.weather import UNKNOWN_RIDE_WEATHER, WeatherSnapshot
from src.infrastructure.cache import InMemoryTTLCache
from src.infrastructure.weather_client import (
    OpenMeteoWeatherClient,
    snapshot_from_payload,
    weather_cache_key,
)
from src.services.weather_surcharge import WeatherSurchargeCalculator
from tests.conftest import CALM, DROP, PICKUP, STORMY, FakeWeatherFetcher

FIXED_NOW = datetime(2026, 10, 19, 14, 37, tzinfo=timezone.utc)


def open_meteo_body(**current) -> dict:
    base = {
        "time": "2026-10-19T14:30",
        "temperature_2m": 22.5,
        "precipitation": 0.0,
        "weather_code": 2,
        "wind_speed_10m": 11.0,
        "visibility": 24000.0,
    }
    base.update(current)
    return {"latitude": 28.6, "longitude": 77.2, "current": base}


def weather_client(handler, **kwargs) -> OpenMeteoWeatherClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("now", lambda: FIXED_NOW)
    return OpenMeteoWeatherClient(http, base_url="https://weather.test/v1/forecast", **kwargs)


class TestWeatherSurchargeCalculator:
    @pytest.mark.asyncio
    async def test_stormy_destination_sets_surcharge(self):
        fetcher = FakeWeatherFetcher({round(PICKUP.lat, 2): CALM, round(DROP.lat, 2): STORMY})
        result = await WeatherSurchargeCalculator(fetcher).assess_ride_weather(PICKUP, DROP)

        assert result.start_weather.condition == "Mainly clear"
        assert result.start_weather.is_bad is False
        assert result.dest_weather.condition == "Thunderstorm"
        assert result.dest_weather.is_bad is True
        assert result.has_bad_weather is True
        assert result.weather_surcharge_applicable is True

    @pytest.mark.asyncio
    async def test_calm_both_ends(self):
        fetcher = FakeWeatherFetcher({round(PICKUP.lat, 2): CALM, round(DROP.lat, 2): CALM})
        result = await WeatherSurchargeCalculator(fetcher).assess_ride_weather(PICKUP, DROP)
        assert result.has_bad_weather is False
        assert result.weather_surcharge_applicable is False

    @pytest.mark.asyncio
    async def test_both_ends_fetched(self):
        fetcher = FakeWeatherFetcher()
        await WeatherSurchargeCalculator(fetcher).assess_ride_weather(PICKUP, DROP)
        assert sorted(fetcher.calls) == sorted([(PICKUP.lat, PICKUP.lng), (DROP.lat, DROP.lng)])

    @pytest.mark.asyncio
    async def test_missing_data_is_unknown_and_not_bad(self):
        result = await WeatherSurchargeCalculator(FakeWeatherFetcher()).assess_ride_weather(
            PICKUP, DROP
        )
        assert result == UNKNOWN_RIDE_WEATHER

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently(self):
        """Each fetch blocks until both have started; a sequential caller would hang."""
        arrived = 0
        both_started = asyncio.Event()

        class BarrierFetcher:
            async def fetch_weather(self, lat, lng):
                nonlocal arrived
                arrived += 1
                if arrived == 2:
                    both_started.set()
                await both_started.wait()
                return STORMY if lat == DROP.lat else CALM

        calculator = WeatherSurchargeCalculator(BarrierFetcher())
        result = await asyncio.wait_for(calculator.assess_ride_weather(PICKUP, DROP), timeout=1.0)
        assert result.has_bad_weather is True

    @pytest.mark.asyncio
    async def test_unexpected_failure_returns_defaults(self):
        class BrokenFetcher:
            async def fetch_weather(self, lat, lng):
                raise RuntimeError("provider exploded")

        result = await WeatherSurchargeCalculator(BrokenFetcher()).assess_ride_weather(
            PICKUP, DROP
        )
        assert result == UNKNOWN_RIDE_WEATHER
        assert result.weather_surcharge_applicable is False


class TestSnapshotFromPayload:
    def test_maps_current_block(self):
        snapshot = snapshot_from_payload(open_meteo_body(weather_code=95, precipitation=4.2))
        assert snapshot == WeatherSnapshot(
            temperature=22.5,
            precipitation_mm_per_hour=4.2,
            weather_code=95,
            wind_speed_kmh=11.0,
            visibility_meters=24000.0,
        )

    def test_missing_fields_take_defaults(self):
        snapshot = snapshot_from_payload({"current": {"temperature_2m": 30.0}})
        assert snapshot.precipitation_mm_per_hour == 0.0
        assert snapshot.wind_speed_kmh == 0.0
        assert snapshot.visibility_meters == 10_000.0
        assert snapshot.weather_code is None

    def test_cache_key_is_rounded_to_the_hour(self):
        assert (
            weather_cache_key(28.6139, 77.209, FIXED_NOW)
            == "weather:28.61,77.21,2026-10-19T14:00:00+00:00"
        )


class TestOpenMeteoWeatherClient:
    @pytest.mark.asyncio
    async def test_sends_expected_query(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json=open_meteo_body())

        snapshot = await weather_client(handler).fetch_weather(28.6, 77.2)

        assert snapshot is not None
        assert snapshot.weather_code == 2
        assert float(seen["latitude"]) == 28.6
        assert float(seen["longitude"]) == 77.2
        assert "visibility" in seen["current"]
        assert seen["timezone"] == "auto"

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self):
        client = weather_client(lambda request: httpx.Response(500))
        assert await client.fetch_weather(28.6, 77.2) is None

    @pytest.mark.asyncio
    async def test_malformed_payload_returns_none(self):
        client = weather_client(lambda request: httpx.Response(200, json={"hourly": {}}))
        assert await client.fetch_weather(28.6, 77.2) is None

    @pytest.mark.asyncio
    async def test_non_json_body_returns_none(self):
        client = weather_client(lambda request: httpx.Response(200, text="<html>busy</html>"))
        assert await client.fetch_weather(28.6, 77.2) is None

    @pytest.mark.asyncio
    async def test_cached_within_the_hour(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=open_meteo_body(weather_code=73))

        cache = InMemoryTTLCache()
        client = weather_client(handler, cache=cache)

        first = await client.fetch_weather(28.6, 77.2)
        second = await client.fetch_weather(28.6001, 77.2001)

        assert len(calls) == 1
        assert first == second
        assert second.weather_code == 73

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self):
        responses = iter([httpx.Response(503), httpx.Response(200, json=open_meteo_body())])
        cache = InMemoryTTLCache()
        client = weather_client(lambda request: next(responses), cache=cache)

        assert await client.fetch_weather(28.6, 77.2) is None
        assert await client.fetch_weather(28.6, 77.2) is not None

    @pytest.mark.asyncio
    async def test_slow_side_times_out_without_blocking_the_other(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            if float(request.url.params["latitude"]) == PICKUP.lat:
                await asyncio.sleep(6)
                return httpx.Response(200, json=open_meteo_body())
            return httpx.Response(
                200,
                json=open_meteo_body(
                    weather_code=95, precipitation=6.0, wind_speed_10m=55.0, visibility=800.0
                ),
            )

        client = weather_client(handler, timeout_seconds=0.05)
        result = await WeatherSurchargeCalculator(client).assess_ride_weather(PICKUP, DROP)

        assert result.start_weather.condition == "Unknown"
        assert result.start_weather.is_bad is False
        assert result.dest_weather.condition == "Thunderstorm"
        assert result.dest_weather.is_bad is True
        assert result.weather_surcharge_applicable is True



class TestWeatherCacheEntries:
    @pytest.mark.asyncio
    async def test_unreadable_entry_is_refetched_and_other_side_kept(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            if float(request.url.params["latitude"]) == DROP.lat:
                return httpx.Response(200, json=open_meteo_body(weather_code=95))
            return httpx.Response(200, json=open_meteo_body())

        cache = InMemoryTTLCache()
        pickup_key = weather_cache_key(PICKUP.lat, PICKUP.lng, FIXED_NOW)
        await cache.set(pickup_key, {"precipitation": 0.0, "weatherCode": 1}, 300)
        client = weather_client(handler, cache=cache)

        result = await WeatherSurchargeCalculator(client).assess_ride_weather(PICKUP, DROP)

        assert result.start_weather.condition == "Partly cloudy"
        assert result.dest_weather.condition == "Thunderstorm"
        assert result.dest_weather.is_bad is True
        assert (await cache.get(pickup_key))["weather_code"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("entry", ["sunny", [1, 2], {"weather_code": "stormy"}])
    async def test_malformed_entries_are_misses(self, entry):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=open_meteo_body())

        cache = InMemoryTTLCache()
        await cache.set(weather_cache_key(28.6, 77.2, FIXED_NOW), entry, 300)

        snapshot = await weather_client(handler, cache=cache).fetch_weather(28.6, 77.2)
        assert snapshot.weather_code == 2
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_hung_cache_read_is_bounded_by_the_timeout(self):
        class HungCache(InMemoryTTLCache):
            async def get(self, key):
                await asyncio.sleep(6)

        client = weather_client(
            lambda request: httpx.Response(200, json=open_meteo_body()),
            cache=HungCache(),
            timeout_seconds=0.05,
        )
        assert await client.fetch_weather(28.6, 77.2) is None
