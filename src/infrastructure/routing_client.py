"""
OSRM driving-route client.

Retries a failed lookup a few times with a short pause, then gives up with
``None`` so the caller can fall back to a straight-line estimate.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError

from src.domain.entities import RouteDistance

logger = logging.getLogger(__name__)


class _Route(BaseModel):
    distance: float
    duration: float


class _RoutePayload(BaseModel):
    code: str
    routes: list[_Route] = []


class OsrmRoutingClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://router.project-osrm.org/route/v1/driving",
        timeout_seconds: float = 5.0,
        max_retries: int = 3,
        retry_delay_seconds: float = 0.5,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.retry_delay_seconds = retry_delay_seconds

    async def route(
        self,
        origin_lat: float,
        origin_lng: float,
        dest_lat: float,
        dest_lng: float,
    ) -> Optional[RouteDistance]:
        # OSRM expects lng,lat pairs
        url = f"{self.base_url}/{origin_lng},{origin_lat};{dest_lng},{dest_lat}"

        for attempt in range(1, self.max_retries + 1):
            try:
                return await self._request(url)
            except (httpx.HTTPError, ValidationError, ValueError) as exc:
                logger.warning(
                    "OSRM attempt %d/%d failed: %s", attempt, self.max_retries, exc
                )
            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay_seconds)

        return None

    async def _request(self, url: str) -> RouteDistance:
        response = await self.client.get(
            url, params={"overview": "false"}, timeout=self.timeout_seconds
        )
        response.raise_for_status()
        payload = _RoutePayload.model_validate(response.json())
        if payload.code != "Ok" or not payload.routes:
            raise ValueError(f"OSRM returned no route (code={payload.code})")
        best = payload.routes[0]
        return RouteDistance(
            distance_meters=best.distance, duration_seconds=best.duration
        )
