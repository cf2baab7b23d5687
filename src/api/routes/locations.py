"""
Location endpoints
==================

GET /api/v1/locations/geocode?q=...                    -- place name -> coordinates
GET /api/v1/locations/distance?origin=...&destination= -- driving distance between places
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.api.dependencies import get_geocoder, get_router
from src.api.middleware import limiter
from src.api.schemas import GeocodeSchema, RouteDistanceSchema
from src.config import settings

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get(
    "/geocode",
    response_model=GeocodeSchema,
    summary="Geocode a place name",
    responses={404: {"description": "Location not found"}},
)
@limiter.limit(settings.rate_limit)
async def geocode(
    request: Request,
    q: str = Query(..., description="Free-text place name"),
    geocoder=Depends(get_geocoder),
):
    if not q.strip():
        raise HTTPException(status_code=400, detail='Query parameter "q" is required')
    result = await geocoder.geocode(q)
    if result is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return GeocodeSchema.model_validate(result)


@router.get(
    "/distance",
    response_model=RouteDistanceSchema,
    summary="Driving distance and duration between two place names",
    responses={404: {"description": "Place or route not found"}},
)
@limiter.limit(settings.rate_limit)
async def distance(
    request: Request,
    origin: str = Query(..., min_length=1),
    destination: str = Query(..., min_length=1),
    geocoder=Depends(get_geocoder),
    routing=Depends(get_router),
):
    if not origin.strip() or not destination.strip():
        raise HTTPException(status_code=400, detail="origin and destination are required")

    origin_geo, dest_geo = await asyncio.gather(
        geocoder.geocode(origin), geocoder.geocode(destination)
    )
    if origin_geo is None or dest_geo is None:
        raise HTTPException(status_code=404, detail="Location not found")

    route = await routing.route(origin_geo.lat, origin_geo.lon, dest_geo.lat, dest_geo.lon)
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found")

    return RouteDistanceSchema(
        origin=origin_geo.name,
        destination=dest_geo.name,
        distance_km=round(route.distance_meters / 1000, 1),
        duration_min=round(route.duration_seconds / 60),
    )
