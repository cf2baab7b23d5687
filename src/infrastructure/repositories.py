"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

The repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Rows are converted to domain ``Ride``
entities before the matcher sees them.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import RideModel
from src.domain.entities import (
    DriverInfo,
    GeoPoint,
    Ride,
    SeatInfo,
    VehicleInfo,
)
from src.domain.enums import RideStatus, VerificationStatus
from src.domain.weather import RideWeatherResult


def ride_from_model(model: RideModel) -> Ride:
    vehicle = None
    if any(
        (
            model.vehicle_make,
            model.vehicle_model,
            model.vehicle_registration,
            model.vehicle_type,
        )
    ):
        vehicle = VehicleInfo(
            make=model.vehicle_make,
            model=model.vehicle_model,
            color=model.vehicle_color,
            registration_number=model.vehicle_registration,
            vehicle_type=model.vehicle_type,
        )

    return Ride(
        id=model.id,
        driver=DriverInfo(
            name=model.driver_name,
            rating=model.driver_rating,
            verification_status=VerificationStatus(model.driver_verification_status),
        ),
        start=GeoPoint(model.start_label, model.start_lat, model.start_lng),
        destination=GeoPoint(
            model.destination_label, model.destination_lat, model.destination_lng
        ),
        date=model.date,
        time=model.time,
        seats=SeatInfo(total=model.seats_total, available=model.seats_available),
        vehicle=vehicle,
        status=RideStatus(model.status),
    )


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_ride(
        self,
        *,
        driver: DriverInfo,
        start: GeoPoint,
        destination: GeoPoint,
        date: str,
        time: str,
        seats: int,
        price: float = 0.0,
        vehicle: VehicleInfo | None = None,
        notes: str = "",
        weather: RideWeatherResult | None = None,
    ) -> RideModel:
        ride = RideModel(
            driver_name=driver.name,
            driver_rating=driver.rating,
            driver_verification_status=driver.verification_status,
            start_label=start.label,
            start_lat=start.lat,
            start_lng=start.lng,
            destination_label=destination.label,
            destination_lat=destination.lat,
            destination_lng=destination.lng,
            date=date,
            time=time,
            seats_total=seats,
            seats_available=seats,
            price=price,
            notes=notes,
            status=RideStatus.OPEN,
        )
        if vehicle is not None:
            ride.vehicle_make = vehicle.make
            ride.vehicle_model = vehicle.model
            ride.vehicle_color = vehicle.color
            ride.vehicle_registration = vehicle.registration_number
            ride.vehicle_type = vehicle.vehicle_type
        if weather is not None:
            ride.start_weather_condition = weather.start_weather.condition
            ride.dest_weather_condition = weather.dest_weather.condition
            ride.has_bad_weather = weather.has_bad_weather
            ride.weather_surcharge_applicable = weather.weather_surcharge_applicable

        self.session.add(ride)
        await self.session.flush()
        return ride

    async def get_by_id(self, ride_id: int) -> Optional[RideModel]:
        return await self.session.get(RideModel, ride_id)

    async def list_open_rides(self, limit: int = 200) -> list[Ride]:
        """Open rides with at least one free seat, oldest first."""
        result = await self.session.execute(
            select(RideModel)
            .where(
                RideModel.status == RideStatus.OPEN,
                RideModel.seats_available > 0,
            )
            .order_by(RideModel.id)
            .limit(limit)
        )
        return [ride_from_model(m) for m in result.scalars().all()]

    async def close_ride(self, model: RideModel) -> RideModel:
        """Raises ``InvalidStateTransition`` if the ride is already closed."""
        ride = ride_from_model(model)
        ride.transition_to(RideStatus.CLOSED)
        model.status = ride.status
        await self.session.flush()
        return model
