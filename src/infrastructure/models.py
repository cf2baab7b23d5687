"""
SQLAlchemy ORM models for the ride store.

Tables
------
* ``rides`` -- rides offered by drivers, with a denormalised driver and
  vehicle summary and the weather assessment taken at creation time.

Indexes
-------
* **B-Tree** on ``status`` and ``date`` for the open-ride candidate scan
  used by the matcher.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from src.domain.enums import RideStatus, VerificationStatus


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, autoincrement=True)

    driver_name = Column(String(120), nullable=False)
    driver_rating = Column(Float, default=4.5, nullable=False)
    driver_verification_status = Column(
        Enum(VerificationStatus),
        default=VerificationStatus.UNVERIFIED,
        nullable=False,
    )

    start_label = Column(String(255), nullable=False, default="")
    start_lat = Column(Float, nullable=False)
    start_lng = Column(Float, nullable=False)
    destination_label = Column(String(255), nullable=False, default="")
    destination_lat = Column(Float, nullable=False)
    destination_lng = Column(Float, nullable=False)

    # Schedule as entered by the driver: "YYYY-MM-DD" and "HH:MM"
    date = Column(String(10), nullable=False)
    time = Column(String(8), nullable=False)

    seats_total = Column(Integer, nullable=False)
    seats_available = Column(Integer, nullable=False)

    vehicle_make = Column(String(60), nullable=True)
    vehicle_model = Column(String(60), nullable=True)
    vehicle_color = Column(String(30), nullable=True)
    vehicle_registration = Column(String(20), nullable=True)
    vehicle_type = Column(String(20), nullable=True)

    status = Column(Enum(RideStatus), default=RideStatus.OPEN, nullable=False)
    price = Column(Float, default=0.0, nullable=False)
    notes = Column(Text, default="", nullable=False)

    start_weather_condition = Column(String(60), nullable=True)
    dest_weather_condition = Column(String(60), nullable=True)
    has_bad_weather = Column(Boolean, default=False, nullable=False)
    weather_surcharge_applicable = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("seats_available >= 0", name="ck_rides_seats_nonneg"),
        CheckConstraint(
            "seats_available <= seats_total", name="ck_rides_seats_le_total"
        ),
        Index("idx_rides_status", "status"),
        Index("idx_rides_date", "date"),
    )
