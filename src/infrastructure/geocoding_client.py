"""Open-Meteo geocoding client: free-text place name -> best match."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from src.domain.entities import GeocodeResult

from .cache import TTLCache

logger = logging.getLogger(__name__)


class _Place(BaseModel):
    name: str
    latitude: float
    longitude: float
    timezone: Optional[str] = None
    country: Optional[str] = None


class _SearchPayload(BaseModel):
    results: list[_Place] = []


class _CachedPlace(BaseModel):
    """Shape of a cached ``GeocodeResult``; anything else is a cache miss."""

    model_config = ConfigDict(extra="forbid")

    name: str
    lat: float
    lon: float
    timezone: str
    country: Optional[str] = None


class OpenMeteoGeocoder:
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://geocoding-api.open-meteo.com/v1/search",
        timeout_seconds: float = 5.0,
        cache: Optional[TTLCache] = None,
        cache_ttl_seconds: float = 24 * 60 * 60,
    ):
        self.client = client
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds

    async def geocode(self, place: str) -> Optional[GeocodeResult]:
        if not place or not place.strip():
            raise ValueError("place must be a non-empty string")

        key = f"geocode:{place.strip().lower()}"
        if self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                try:
                    entry = _CachedPlace.model_validate(cached)
                except ValidationError:
                    logger.warning("Discarding unreadable geocode cache entry %s", key)
                else:
                    logger.debug("Geocode cache hit for %r", place)
                    return GeocodeResult(**entry.model_dump())

        try:
            response = await self.client.get(
                self.base_url,
                params={
                    "name": place.strip(),
                    "count": 1,
                    "language": "en",
                    "format": "json",
                },
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            payload = _SearchPayload.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.warning("Geocoding error for %r: %s", place, exc)
            return None

        if not payload.results:
            return None

        best = payload.results[0]
        result = GeocodeResult(
            name=best.name,
            lat=best.latitude,
            lon=best.longitude,
            timezone=best.timezone or "UTC",
            country=best.country,
        )
        if self.cache is not None:
            await self.cache.set(key, asdict(result), self.cache_ttl_seconds)
        return result
