"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Ride``: enforces valid lifecycle transitions
  (OPEN -> CLOSED).
- ``RideRequest`` validates itself on construction so an invalid query is
  rejected before any matching starts.
- ``GeoPoint`` and the other value objects are frozen: once attached to a
  ride or a query they never change.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .enums import RIDE_TRANSITIONS, RideStatus, VerificationStatus


class InvalidStateTransition(Exception):
    """Raised when a ride status change violates the state machine."""


class InvalidRideRequest(ValueError):
    """Raised when a match query is malformed (e.g. zero seats)."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class GeoPoint:
    label: str
    lat: float
    lng: float

    @property
    def has_coordinates(self) -> bool:
        """False for non-finite values and for the unset ``(0, 0)`` point."""
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            return False
        return not (self.lat == 0 and self.lng == 0)


@dataclass(frozen=True)
class DriverInfo:
    name: str
    rating: float = 4.5
    verification_status: VerificationStatus = VerificationStatus.UNVERIFIED


@dataclass(frozen=True)
class SeatInfo:
    total: int
    available: int


@dataclass(frozen=True)
class VehicleInfo:
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    registration_number: Optional[str] = None
    vehicle_type: Optional[str] = None


@dataclass(frozen=True)
class GeocodeResult:
    name: str
    lat: float
    lon: float
    timezone: str = "UTC"
    country: Optional[str] = None


@dataclass(frozen=True)
class RouteDistance:
    distance_meters: float
    duration_seconds: float


# ── Schedule parsing ──────────────────────────────────────────────────


def parse_ride_datetime(date_str: str, time_str: str) -> Optional[datetime]:
    """
    Combine a ride's ``YYYY-MM-DD`` date and its clock time into one UTC
    instant.  Accepts ``HH:MM``, ``HH:MM:SS`` and ``h:mm AM/PM``.

    Returns ``None`` when either part is missing or unparseable.
    """
    if not date_str or not time_str:
        return None

    text = f"{date_str.strip()} {time_str.strip().upper()}"
    for fmt in ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %I:%M %p"):
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Ride:
    id: Optional[int] = None
    driver: DriverInfo = field(default_factory=lambda: DriverInfo(name="Unknown"))
    start: GeoPoint = field(default_factory=lambda: GeoPoint("", 0.0, 0.0))
    destination: GeoPoint = field(default_factory=lambda: GeoPoint("", 0.0, 0.0))
    date: str = ""
    time: str = ""
    seats: SeatInfo = field(default_factory=lambda: SeatInfo(total=1, available=1))
    vehicle: Optional[VehicleInfo] = None
    status: RideStatus = RideStatus.OPEN

    @property
    def departure_at(self) -> Optional[datetime]:
        return parse_ride_datetime(self.date, self.time)

    def can_seat(self, seats_required: int) -> bool:
        return (
            self.status == RideStatus.OPEN
            and self.seats.available >= seats_required
        )

    def transition_to(self, new_status: RideStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = RIDE_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        self.status = new_status


@dataclass(frozen=True)
class RideRequest:
    """A rider's search query; never persisted."""

    pickup: GeoPoint
    drop: GeoPoint
    preferred_time: Optional[datetime] = None
    seats_required: int = 1

    def __post_init__(self) -> None:
        if self.pickup is None or self.drop is None:
            raise InvalidRideRequest("pickup and drop are required to find rides")
        if isinstance(self.seats_required, bool) or not isinstance(
            self.seats_required, int
        ):
            raise InvalidRideRequest("seatsRequired must be an integer")
        if self.seats_required < 1:
            raise InvalidRideRequest("seatsRequired must be at least 1")
        if self.preferred_time is not None:
            object.__setattr__(self, "preferred_time", as_utc(self.preferred_time))
