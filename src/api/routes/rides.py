"""
Ride endpoints
==============

POST  /api/v1/rides/match           -- tiered matches for a rider's query
POST  /api/v1/rides/quote           -- fare + weather quote for two points
POST  /api/v1/rides                 -- offer a ride (weather assessed on creation)
GET   /api/v1/rides/{ride_id}       -- ride details
PATCH /api/v1/rides/{ride_id}/close -- close a ride to new matches
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    get_db,
    get_geocoder,
    get_match_thresholds,
    get_quote_service,
    get_weather_calculator,
)
from src.api.middleware import limiter
from src.api.schemas import (
    GeoPointIn,
    RideCreateRequest,
    RideDetailSchema,
    RideMatchRequest,
    RideMatchResponseSchema,
    RideQuoteRequest,
    RideQuoteSchema,
    RideWeatherSchema,
)
from src.config import settings
from src.domain.entities import (
    DriverInfo,
    GeoPoint,
    InvalidStateTransition,
    RideRequest,
    VehicleInfo,
)
from src.domain.enums import MatchQuality
from src.domain.matching import MatchThresholds, RideMatchResponse, match_rides
from src.infrastructure.models import RideModel
from src.infrastructure.repositories import RideRepository, ride_from_model
from src.services.ride_quotes import RideQuoteService
from src.services.weather_surcharge import WeatherSurchargeCalculator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rides", tags=["rides"])


# ── Helpers ───────────────────────────────────────────────────────────


def _point(schema: GeoPointIn) -> GeoPoint:
    return GeoPoint(label=schema.label, lat=schema.lat, lng=schema.lng)


async def _resolve_point(
    value: Union[GeoPointIn, str], field_name: str, geocoder
) -> GeoPoint:
    if isinstance(value, GeoPointIn):
        return _point(value)

    place = value.strip()
    if not place:
        raise HTTPException(status_code=400, detail=f"Missing {field_name} location")
    geocoded = await geocoder.geocode(place)
    if geocoded is None:
        raise HTTPException(
            status_code=400, detail=f"Could not geocode {field_name}: {place}"
        )
    return GeoPoint(label=geocoded.name, lat=geocoded.lat, lng=geocoded.lon)


def _finite(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return value


def _match_payload(query: RideRequest, result: RideMatchResponse) -> dict:
    tiers = {}
    for quality in MatchQuality:
        tiers[quality.value] = [
            {
                "ride": m.ride,
                "match_quality": m.match_quality,
                "metrics": {
                    "pickup_distance_km": _finite(m.metrics.pickup_distance_km),
                    "drop_distance_km": _finite(m.metrics.drop_distance_km),
                    "time_diff_minutes": _finite(m.metrics.time_diff_minutes),
                },
            }
            for m in result.matches[quality]
        ]
    return {
        "rider": {
            "pickup": query.pickup,
            "drop": query.drop,
            "preferred_time": query.preferred_time,
            "seats_required": query.seats_required,
        },
        "matches": tiers,
        "totals": {q.value: n for q, n in result.totals.items()},
    }


def _ride_detail(model: RideModel) -> RideDetailSchema:
    ride = ride_from_model(model)
    return RideDetailSchema.model_validate(
        {
            "id": ride.id,
            "driver": ride.driver,
            "start": ride.start,
            "destination": ride.destination,
            "date": ride.date,
            "time": ride.time,
            "seats": ride.seats,
            "vehicle": ride.vehicle,
            "status": ride.status,
            "price": model.price,
            "notes": model.notes,
            "weather": {
                "start_condition": model.start_weather_condition,
                "dest_condition": model.dest_weather_condition,
                "has_bad_weather": model.has_bad_weather,
                "weather_surcharge_applicable": model.weather_surcharge_applicable,
            },
        }
    )


# ── Matching ──────────────────────────────────────────────────────────


@router.post(
    "/match",
    response_model=RideMatchResponseSchema,
    summary="Find rides for a rider, bucketed into perfect / good / nearby",
    responses={400: {"description": "Invalid query or unknown place name."}},
)
@limiter.limit(settings.rate_limit)
async def find_ride_matches(
    request: Request,
    body: RideMatchRequest,
    db: AsyncSession = Depends(get_db),
    geocoder=Depends(get_geocoder),
    thresholds: MatchThresholds = Depends(get_match_thresholds),
):
    pickup = await _resolve_point(body.pickup, "pickup", geocoder)
    drop = await _resolve_point(body.drop, "drop", geocoder)
    query = RideRequest(
        pickup=pickup,
        drop=drop,
        preferred_time=body.preferred_time,
        seats_required=body.seats_required,
    )

    candidates = await RideRepository(db).list_open_rides(
        limit=settings.match_candidate_limit
    )
    if len(candidates) >= settings.match_candidate_limit:
        logger.warning(
            "Candidate limit of %d reached; newer open rides were not considered",
            settings.match_candidate_limit,
        )
    result = match_rides(query, candidates, thresholds)
    logger.info(
        "Match query over %d rides: %s",
        len(candidates),
        {q.value: n for q, n in result.totals.items()},
    )
    return _match_payload(query, result)


@router.post(
    "/quote",
    response_model=RideQuoteSchema,
    summary="Quote a fare and weather surcharge flag for a ride",
)
@limiter.limit(settings.rate_limit)
async def quote_ride(
    request: Request,
    body: RideQuoteRequest,
    quotes: RideQuoteService = Depends(get_quote_service),
):
    try:
        quote = await quotes.quote(
            _point(body.start), _point(body.destination), body.seats
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    fare = quote.fare
    return RideQuoteSchema(
        distance_km=fare.distance_km,
        duration_minutes=fare.duration_minutes,
        cost=fare.cost,
        price_per_rider=fare.price_per_rider,
        driver_earning=fare.driver_earning,
        platform_fee=fare.platform_fee,
        fallback=fare.fallback,
        weather=RideWeatherSchema.model_validate(quote.weather),
    )


# ── Ride lifecycle ────────────────────────────────────────────────────


@router.post(
    "",
    status_code=201,
    response_model=RideDetailSchema,
    summary="Offer a ride",
    description=(
        "Stores an open ride.  Current weather at both endpoints is assessed "
        "and the surcharge flag stored with the ride; a weather-provider "
        "outage never blocks creation."
    ),
)
@limiter.limit(settings.rate_limit)
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    db: AsyncSession = Depends(get_db),
    weather: WeatherSurchargeCalculator = Depends(get_weather_calculator),
):
    start = _point(body.start)
    destination = _point(body.destination)
    assessment = await weather.assess_ride_weather(start, destination)

    vehicle = None
    if body.vehicle is not None:
        vehicle = VehicleInfo(**body.vehicle.model_dump())

    ride = await RideRepository(db).create_ride(
        driver=DriverInfo(
            name=body.driver.name,
            rating=body.driver.rating,
            verification_status=body.driver.verification_status,
        ),
        start=start,
        destination=destination,
        date=body.date,
        time=body.time,
        seats=body.seats,
        price=body.price,
        vehicle=vehicle,
        notes=body.notes,
        weather=assessment,
    )
    logger.info("Ride %s created (bad weather: %s)", ride.id, assessment.has_bad_weather)
    return _ride_detail(ride)


@router.get(
    "/{ride_id}",
    response_model=RideDetailSchema,
    summary="Get ride details",
)
@limiter.limit(settings.rate_limit)
async def get_ride(
    request: Request,
    ride_id: int,
    db: AsyncSession = Depends(get_db),
):
    ride = await RideRepository(db).get_by_id(ride_id)
    if not ride:
        raise HTTPException(status_code=404, detail="Ride not found")
    return _ride_detail(ride)


@router.patch(
    "/{ride_id}/close",
    response_model=RideDetailSchema,
    summary="Close a ride",
    description="Transitions an open ride to closed; closed rides are never matched.",
)
@limiter.limit(settings.rate_limit)
async def close_ride(
    request: Request,
    ride_id: int,
    db: AsyncSession = Depends(get_db),
):
    repo = RideRepository(db)
    ride = await repo.get_by_id(ride_id)
    if not ride:
        raise HTTPException(status_code=404, detail="Ride not found")

    try:
        ride = await repo.close_ride(ride)
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _ride_detail(ride)
