"""Pydantic request / response schemas for the REST API (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from src.domain.entities import parse_ride_datetime
from src.domain.enums import MatchQuality, RideStatus, VerificationStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Shared ────────────────────────────────────────────────────────────


class GeoPointIn(CamelModel):
    label: str = ""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class GeoPointOut(CamelModel):
    label: str
    lat: float
    lng: float


class DriverSchema(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    rating: float = Field(4.5, ge=0, le=5)
    verification_status: VerificationStatus = VerificationStatus.UNVERIFIED


class DriverOut(CamelModel):
    """Stored driver summary; echoed as-is, never re-validated against input limits."""

    name: str
    rating: float
    verification_status: VerificationStatus


class SeatsSchema(CamelModel):
    total: int
    available: int


class VehicleSchema(CamelModel):
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    registration_number: Optional[str] = None
    vehicle_type: Optional[str] = None


# ── Requests ──────────────────────────────────────────────────────────


class RideMatchRequest(CamelModel):
    """A point may be given as coordinates or as a place name to geocode."""

    pickup: Union[GeoPointIn, str]
    drop: Union[GeoPointIn, str]
    preferred_time: Optional[datetime] = None
    seats_required: int = Field(1, ge=1)


class RideCreateRequest(CamelModel):
    driver: DriverSchema
    start: GeoPointIn
    destination: GeoPointIn
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", examples=["2026-10-20"])
    time: str = Field(..., max_length=8, examples=["09:30"])
    seats: int = Field(1, ge=1, le=8)
    price: float = Field(0.0, ge=0)
    vehicle: Optional[VehicleSchema] = None
    notes: str = Field("", max_length=500)

    @model_validator(mode="after")
    def _schedule_parses(self) -> "RideCreateRequest":
        if parse_ride_datetime(self.date, self.time) is None:
            raise ValueError("date and time must form a valid schedule (e.g. 2026-10-20 09:30)")
        return self


class RideQuoteRequest(CamelModel):
    start: GeoPointIn
    destination: GeoPointIn
    seats: int = Field(1, ge=1, le=8)


# ── Responses ─────────────────────────────────────────────────────────


class RideSchema(CamelModel):
    id: Optional[int] = None
    driver: DriverOut
    start: GeoPointOut
    destination: GeoPointOut
    date: str
    time: str
    seats: SeatsSchema
    vehicle: Optional[VehicleSchema] = None
    status: RideStatus


class RideMatchMetricsSchema(CamelModel):
    """``None`` distances mean the ride's coordinates were unusable."""

    pickup_distance_km: Optional[float] = None
    drop_distance_km: Optional[float] = None
    time_diff_minutes: Optional[float] = None


class RideMatchSchema(CamelModel):
    ride: RideSchema
    match_quality: MatchQuality
    metrics: RideMatchMetricsSchema


class MatchTiersSchema(CamelModel):
    perfect: list[RideMatchSchema] = []
    good: list[RideMatchSchema] = []
    nearby: list[RideMatchSchema] = []


class MatchTotalsSchema(CamelModel):
    perfect: int = 0
    good: int = 0
    nearby: int = 0


class RiderQuerySchema(CamelModel):
    pickup: GeoPointOut
    drop: GeoPointOut
    preferred_time: Optional[datetime] = None
    seats_required: int


class RideMatchResponseSchema(CamelModel):
    rider: RiderQuerySchema
    matches: MatchTiersSchema
    totals: MatchTotalsSchema


class WeatherSnapshotSchema(CamelModel):
    temperature: Optional[float] = None
    precipitation_mm_per_hour: float
    weather_code: Optional[int] = None
    wind_speed_kmh: float
    visibility_meters: float


class WeatherAssessmentSchema(CamelModel):
    condition: str
    is_bad: bool
    raw: Optional[WeatherSnapshotSchema] = None


class RideWeatherSchema(CamelModel):
    start_weather: WeatherAssessmentSchema
    dest_weather: WeatherAssessmentSchema
    has_bad_weather: bool
    weather_surcharge_applicable: bool


class StoredWeatherSchema(CamelModel):
    start_condition: Optional[str] = None
    dest_condition: Optional[str] = None
    has_bad_weather: bool = False
    weather_surcharge_applicable: bool = False


class RideDetailSchema(RideSchema):
    price: float
    notes: str = ""
    weather: StoredWeatherSchema


class RideQuoteSchema(CamelModel):
    distance_km: float
    duration_minutes: int
    cost: float
    price_per_rider: float
    driver_earning: float
    platform_fee: float
    fallback: bool = False
    weather: RideWeatherSchema


class GeocodeSchema(CamelModel):
    name: str
    lat: float
    lon: float
    timezone: str
    country: Optional[str] = None


class RouteDistanceSchema(CamelModel):
    origin: str
    destination: str
    distance_km: float
    duration_min: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
