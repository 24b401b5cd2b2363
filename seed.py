"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 3 drivers and 5 passengers
  - 6 upcoming trips around Trento (one with coordinates missing)
  - 1 departed trip with confirmed bookings and reviews
  - a few confirmed / cancelled bookings and a favorite search
"""

import asyncio
from datetime import timedelta

from sqlalchemy import text

from src.domain.clock import utcnow
from src.domain.enums import BookingStatus, UserRole
from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.models import (
    BookingModel,
    FavoriteSearchModel,
    ReviewModel,
    TripModel,
    UserModel,
)

TRENTO = ("Trento Centro", 46.0679, 11.1211)
ROVERETO = ("Rovereto", 45.8903, 11.0340)
BOLZANO = ("Bolzano Stazione", 46.4983, 11.3548)
RIVA = ("Riva del Garda", 45.8858, 10.8412)

USERS = [
    {"name": "Giulia Rossi", "email": "giulia@example.com", "role": UserRole.DRIVER},
    {"name": "Marco Bianchi", "email": "marco@example.com", "role": UserRole.DRIVER},
    {"name": "Elena Conti", "email": "elena@example.com", "role": UserRole.DRIVER},
    {"name": "Luca Ferrari", "email": "luca@example.com", "role": UserRole.PASSENGER},
    {"name": "Sara Greco", "email": "sara@example.com", "role": UserRole.PASSENGER},
    {"name": "Paolo Ricci", "email": "paolo@example.com", "role": UserRole.PASSENGER},
    {"name": "Anna Marino", "email": "anna@example.com", "role": UserRole.PASSENGER},
    {"name": "Davide Costa", "email": "davide@example.com", "role": UserRole.PASSENGER},
]


def _trip(driver, origin, destination, departs_in, seats, booked=0, coords=True):
    return TripModel(
        driver_id=driver.id,
        origin_address=origin[0],
        origin_lat=origin[1] if coords else None,
        origin_lng=origin[2] if coords else None,
        destination_address=destination[0],
        destination_lat=destination[1] if coords else None,
        destination_lng=destination[2] if coords else None,
        departure_time=utcnow() + departs_in,
        available_seats=seats - booked,
        total_seats=seats,
    )


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        users = [UserModel(**u) for u in USERS]
        session.add_all(users)
        await session.flush()
        drivers, passengers = users[:3], users[3:]
        print(f"  Created {len(users)} users")

        # ── Trips ─────────────────────────────────────────────────────
        trips = [
            _trip(drivers[0], TRENTO, ROVERETO, timedelta(hours=20), 3, booked=2),
            _trip(drivers[0], TRENTO, ROVERETO, timedelta(hours=20, minutes=20), 4),
            _trip(drivers[1], ROVERETO, TRENTO, timedelta(days=1, hours=8), 2),
            _trip(drivers[1], TRENTO, BOLZANO, timedelta(days=2), 4, booked=1),
            _trip(drivers[2], RIVA, TRENTO, timedelta(days=2, hours=3), 1),
            _trip(drivers[2], TRENTO, RIVA, timedelta(days=3), 3, coords=False),
        ]
        past = _trip(drivers[1], BOLZANO, TRENTO, -timedelta(days=2), 3, booked=2)
        session.add_all(trips + [past])
        await session.flush()
        print(f"  Created {len(trips) + 1} trips")

        # ── Bookings (seat counters above already account for them) ────
        bookings = [
            BookingModel(trip_id=trips[0].id, passenger_id=passengers[0].id),
            BookingModel(trip_id=trips[0].id, passenger_id=passengers[1].id),
            BookingModel(trip_id=trips[3].id, passenger_id=passengers[2].id),
            BookingModel(
                trip_id=trips[2].id,
                passenger_id=passengers[3].id,
                status=BookingStatus.CANCELLED,
            ),
            BookingModel(trip_id=past.id, passenger_id=passengers[0].id),
            BookingModel(trip_id=past.id, passenger_id=passengers[4].id),
        ]
        session.add_all(bookings)
        await session.flush()
        print(f"  Created {len(bookings)} bookings")

        # ── Reviews on the departed trip ──────────────────────────────
        session.add_all(
            [
                ReviewModel(
                    trip_id=past.id,
                    reviewer_id=passengers[0].id,
                    driver_id=drivers[1].id,
                    rating=5,
                    comment="On time and friendly.",
                ),
                ReviewModel(
                    trip_id=past.id,
                    reviewer_id=passengers[4].id,
                    driver_id=drivers[1].id,
                    rating=4,
                ),
            ]
        )
        session.add(
            FavoriteSearchModel(
                user_id=passengers[0].id,
                label="Daily commute",
                origin=TRENTO[0],
                destination=ROVERETO[0],
                preferred_time="08:30",
            )
        )
        await session.flush()
        print("  Created 2 reviews and 1 favorite search")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
