"""Trip Inventory: driver-side trip lifecycle and the public trip listings."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config import settings
from src.domain.clock import as_utc, utcnow
from src.domain.entities import Location
from src.domain.errors import (
    AuthorizationError,
    NotFoundError,
    TripHasBookings,
    ValidationError,
)
from src.infrastructure.models import TripModel
from src.infrastructure.repositories import (
    BookingRepository,
    TripRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class TripInventory:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
        max_seats: int = settings.max_seats_per_trip,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.max_seats = max_seats

    async def create_trip(
        self,
        *,
        driver_id: int,
        origin: Location,
        destination: Location,
        departure_time: datetime,
        seats: int,
    ) -> TripModel:
        if not 1 <= seats <= self.max_seats:
            raise ValidationError(
                f"Available seats must be between 1 and {self.max_seats}"
            )
        if not origin.address.strip() or not destination.address.strip():
            raise ValidationError("Origin and destination addresses are required")
        departure_time = as_utc(departure_time)
        if departure_time <= self.clock():
            raise ValidationError("Departure time must be in the future")

        async with self.session_factory() as session, session.begin():
            if await UserRepository(session).get_by_id(driver_id) is None:
                raise NotFoundError("User not found")
            trip = await TripRepository(session).create_trip(
                driver_id=driver_id,
                origin=origin,
                destination=destination,
                departure_time=departure_time,
                seats=seats,
            )
        logger.info(
            "Trip %d created by driver %d (%d seats, departs %s)",
            trip.id,
            driver_id,
            seats,
            departure_time.isoformat(),
        )
        return trip

    async def get_trip(self, trip_id: int) -> TripModel:
        async with self.session_factory() as session:
            trip = await TripRepository(session).get_by_id(trip_id)
        if trip is None:
            raise NotFoundError("Trip not found")
        return trip

    async def list_open_trips(
        self, origin: Optional[str] = None, destination: Optional[str] = None
    ) -> list[TripModel]:
        """Future trips with free seats, soonest first."""
        async with self.session_factory() as session:
            return await TripRepository(session).list_open(
                self.clock(), origin=origin, destination=destination
            )

    async def list_driver_trips(self, driver_id: int) -> list[TripModel]:
        async with self.session_factory() as session:
            return await TripRepository(session).list_for_driver(driver_id)

    async def delete_trip(self, driver_id: int, trip_id: int) -> None:
        async with self.session_factory() as session, session.begin():
            trips = TripRepository(session)
            # row lock queues behind (or blocks) a join's guarded seat UPDATE,
            # so the count below sees every booking committed before it
            trip = await trips.get_for_update(trip_id)
            if trip is None:
                raise NotFoundError("Trip not found")
            if trip.driver_id != driver_id:
                raise AuthorizationError("You can only delete your own trips")
            if await BookingRepository(session).count_confirmed(trip_id):
                raise TripHasBookings()
            if not await trips.delete_if_unbooked(trip_id, driver_id):
                raise TripHasBookings()
        logger.info("Trip %d deleted by driver %d", trip_id, driver_id)
