"""
Booking Ledger
==============

Owns booking records and drives the trip's seat counter.

State machine
-------------
    (no booking) --join--> CONFIRMED --cancel--> CANCELLED (terminal)

Transactional units
-------------------
* **join**   = guarded seat decrement + CONFIRMED booking insert
* **cancel** = guarded status flip + guarded seat restore

Each unit runs in one database transaction opened from the session
factory.  Pre-checks run first in a separate read session so the common
rejections (sold out, already booked, departed) fail fast; they are
advisory only.  Inside the transaction the guarded statements are the
final authority: a stale pre-check can never oversell, and an
``IntegrityError`` from the partial unique index rolls the seat decrement
back together with the failed insert.

Concurrency safety
------------------
No in-process locks.  The contended state is ``trips.available_seats``
and every writer goes through ``TripRepository``'s single-statement
guarded UPDATE, which the database serialises per row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.clock import utcnow
from src.domain.errors import (
    AlreadyBooked,
    AlreadyCancelled,
    AuthorizationError,
    InfrastructureError,
    NoSeatsAvailable,
    NotFoundError,
    OwnTripBooking,
    TripDeparted,
)
from src.infrastructure.models import BookingModel, TripModel
from src.infrastructure.notifications import BookingNotifier
from src.infrastructure.repositories import (
    BookingRepository,
    TripRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class BookingResult:
    booking: BookingModel
    trip: Optional[TripModel]
    seat_restored: bool = False


class BookingLedger:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: BookingNotifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.clock = clock

    # ── Join ──────────────────────────────────────────────────────────

    async def join_trip(self, passenger_id: int, trip_id: int) -> BookingResult:
        await self._check_can_join(passenger_id, trip_id)
        result = await self.reserve_seat(passenger_id, trip_id)
        logger.info(
            "Booking %d confirmed: passenger=%d trip=%d seats_left=%d",
            result.booking.id,
            passenger_id,
            trip_id,
            result.trip.available_seats,
        )
        await self._notify_confirmed(result)
        return result

    async def _check_can_join(self, passenger_id: int, trip_id: int) -> None:
        async with self.session_factory() as session:
            trip = await TripRepository(session).get_by_id(trip_id)
            if trip is None:
                raise NotFoundError("Trip not found")
            if trip.departure_time <= self.clock():
                raise TripDeparted()
            if trip.available_seats <= 0:
                raise NoSeatsAvailable()
            if trip.driver_id == passenger_id:
                raise OwnTripBooking()
            if await BookingRepository(session).get_active(trip_id, passenger_id):
                raise AlreadyBooked()
            if await UserRepository(session).get_by_id(passenger_id) is None:
                raise NotFoundError("User not found")

    async def reserve_seat(self, passenger_id: int, trip_id: int) -> BookingResult:
        """Decrement + insert as one transaction; both apply or neither does."""
        try:
            async with self.session_factory() as session, session.begin():
                trip = await TripRepository(session).decrement_seat_if_available(
                    trip_id
                )
                if trip is None:
                    raise NoSeatsAvailable()
                booking = await BookingRepository(session).create_booking(
                    trip_id=trip_id, passenger_id=passenger_id
                )
        except IntegrityError as exc:
            # seat decrement rolled back with the failed insert
            if await self._has_active_booking(passenger_id, trip_id):
                logger.info(
                    "Duplicate booking rejected: passenger=%d trip=%d",
                    passenger_id,
                    trip_id,
                )
                raise AlreadyBooked() from None
            logger.exception("Booking insert violated a constraint for trip %d", trip_id)
            raise InfrastructureError("Booking could not be completed") from exc
        except SQLAlchemyError as exc:
            logger.exception("Join transaction failed for trip %d", trip_id)
            raise InfrastructureError("Booking could not be completed") from exc
        return BookingResult(booking=booking, trip=trip)

    async def _has_active_booking(self, passenger_id: int, trip_id: int) -> bool:
        async with self.session_factory() as session:
            booking = await BookingRepository(session).get_active(trip_id, passenger_id)
        return booking is not None

    async def _notify_confirmed(self, result: BookingResult) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.booking_confirmed(result.booking, result.trip)
        except Exception:
            logger.warning(
                "Booking notification failed for booking %d",
                result.booking.id,
                exc_info=True,
            )

    # ── Cancel ────────────────────────────────────────────────────────

    async def cancel_booking(self, passenger_id: int, booking_id: int) -> BookingResult:
        async with self.session_factory() as session:
            booking = await BookingRepository(session).get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        if booking.passenger_id != passenger_id:
            raise AuthorizationError("You can only cancel your own bookings")

        try:
            async with self.session_factory() as session, session.begin():
                bookings = BookingRepository(session)
                trips = TripRepository(session)
                if not await bookings.cancel_if_active(booking_id):
                    raise AlreadyCancelled()
                # no-op once the trip has departed
                restored = await trips.increment_seat(booking.trip_id, self.clock())
                cancelled = await bookings.get_by_id(booking_id, refresh=True)
                trip = await trips.get_by_id(booking.trip_id, refresh=True)
        except SQLAlchemyError as exc:
            logger.exception("Cancel transaction failed for booking %d", booking_id)
            raise InfrastructureError("Cancellation could not be completed") from exc

        logger.info(
            "Booking %d cancelled: trip=%d seat_restored=%s",
            booking_id,
            booking.trip_id,
            restored,
        )
        return BookingResult(booking=cancelled, trip=trip, seat_restored=restored)

    # ── Reads ─────────────────────────────────────────────────────────

    async def list_passenger_bookings(self, passenger_id: int) -> list[BookingModel]:
        async with self.session_factory() as session:
            return await BookingRepository(session).list_for_passenger(passenger_id)

    async def list_trip_bookings(self, driver_id: int, trip_id: int) -> list[BookingModel]:
        async with self.session_factory() as session:
            trip = await TripRepository(session).get_by_id(trip_id)
            if trip is None:
                raise NotFoundError("Trip not found")
            if trip.driver_id != driver_id:
                raise AuthorizationError(
                    "You can only view bookings for your own trips"
                )
            return await BookingRepository(session).list_confirmed_for_trip(trip_id)
