"""
Seed script -- populates the ride store with sample open rides for reviewers.

Run with:
    python seed.py

Creates the ``rides`` table if needed, then adds:
  - 8 open rides around Delhi NCR on tomorrow's date
  - 1 closed ride (never matched)
  - 1 full ride with no free seats (never matched)

Weather is not fetched here; seeded rides carry no surcharge flag.
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import func, select

from src.domain.enums import RideStatus, VerificationStatus
from src.infrastructure.database import async_session_factory, create_tables, engine
from src.infrastructure.models import RideModel

# (label, lat, lng)
CONNAUGHT_PLACE = ("Connaught Place, New Delhi", 28.6315, 77.2167)
INDIA_GATE = ("India Gate, New Delhi", 28.6129, 77.2295)
SAKET = ("Saket, New Delhi", 28.5245, 77.2066)
NOIDA_18 = ("Sector 18, Noida", 28.5708, 77.3261)
GURUGRAM_CYBER = ("Cyber City, Gurugram", 28.4950, 77.0895)
DELHI_AIRPORT = ("IGI Airport T3, New Delhi", 28.5562, 77.1000)
LAJPAT_NAGAR = ("Lajpat Nagar, New Delhi", 28.5677, 77.2433)
DWARKA = ("Dwarka Sector 21, New Delhi", 28.5523, 77.0583)

RIDES = [
    {"driver": ("Aarav Sharma", 4.8), "start": CONNAUGHT_PLACE, "dest": SAKET, "time": "09:00", "seats": 3},
    {"driver": ("Priya Patel", 4.9), "start": INDIA_GATE, "dest": LAJPAT_NAGAR, "time": "09:30", "seats": 2},
    {"driver": ("Rohan Mehta", 4.5), "start": CONNAUGHT_PLACE, "dest": NOIDA_18, "time": "10:15", "seats": 4},
    {"driver": ("Sneha Gupta", 4.7), "start": SAKET, "dest": GURUGRAM_CYBER, "time": "08:45", "seats": 2},
    {"driver": ("Vikram Singh", 4.6), "start": DWARKA, "dest": DELHI_AIRPORT, "time": "06:30", "seats": 3},
    {"driver": ("Ananya Reddy", 4.9), "start": LAJPAT_NAGAR, "dest": CONNAUGHT_PLACE, "time": "18:00", "seats": 1},
    {"driver": ("Karan Joshi", 4.3), "start": NOIDA_18, "dest": INDIA_GATE, "time": "08:00", "seats": 3},
    {"driver": ("Meera Nair", 4.8), "start": GURUGRAM_CYBER, "dest": DELHI_AIRPORT, "time": "07:15", "seats": 2},
    {"driver": ("Arjun Kumar", 4.4), "start": CONNAUGHT_PLACE, "dest": SAKET, "time": "09:10", "seats": 2, "status": RideStatus.CLOSED},
    {"driver": ("Diya Iyer", 4.7), "start": INDIA_GATE, "dest": SAKET, "time": "09:20", "seats": 3, "available": 0},
]


async def seed():
    await create_tables()

    async with async_session_factory() as session:
        result = await session.execute(select(func.count()).select_from(RideModel))
        if result.scalar() > 0:
            print("Ride store already seeded. Skipping.")
            return

        ride_date = (date.today() + timedelta(days=1)).isoformat()
        for entry in RIDES:
            name, rating = entry["driver"]
            start_label, start_lat, start_lng = entry["start"]
            dest_label, dest_lat, dest_lng = entry["dest"]
            session.add(
                RideModel(
                    driver_name=name,
                    driver_rating=rating,
                    driver_verification_status=VerificationStatus.VERIFIED,
                    start_label=start_label,
                    start_lat=start_lat,
                    start_lng=start_lng,
                    destination_label=dest_label,
                    destination_lat=dest_lat,
                    destination_lng=dest_lng,
                    date=ride_date,
                    time=entry["time"],
                    seats_total=entry["seats"],
                    seats_available=entry.get("available", entry["seats"]),
                    status=entry.get("status", RideStatus.OPEN),
                    price=0.0,
                )
            )

        await session.commit()
        print(f"Seeded {len(RIDES)} rides for {ride_date}.")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
