"""
Weather endpoints
=================

GET /api/v1/weather/ride -- bad-weather assessment for both ends of a ride
"""

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import get_weather_calculator
from src.api.middleware import limiter
from src.api.schemas import RideWeatherSchema
from src.config import settings
from src.domain.entities import GeoPoint
from src.services.weather_surcharge import WeatherSurchargeCalculator

router = APIRouter(prefix="/weather", tags=["weather"])


@router.get(
    "/ride",
    response_model=RideWeatherSchema,
    summary="Assess weather at a ride's start and destination",
    description=(
        "Never fails because of the weather provider: an unreachable "
        "endpoint is reported as 'Unknown' and not bad."
    ),
)
@limiter.limit(settings.rate_limit)
async def ride_weather(
    request: Request,
    start_lat: float = Query(..., alias="startLat", ge=-90, le=90),
    start_lng: float = Query(..., alias="startLng", ge=-180, le=180),
    dest_lat: float = Query(..., alias="destLat", ge=-90, le=90),
    dest_lng: float = Query(..., alias="destLng", ge=-180, le=180),
    calculator: WeatherSurchargeCalculator = Depends(get_weather_calculator),
):
    result = await calculator.assess_ride_weather(
        GeoPoint("start", start_lat, start_lng),
        GeoPoint("destination", dest_lat, dest_lng),
    )
    return RideWeatherSchema.model_validate(result)
