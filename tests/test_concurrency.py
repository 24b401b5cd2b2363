"""
Concurrency safety tests.

Demonstrates:
1. More simultaneous joins than seats never oversell a trip.
2. The same passenger racing twice ends with exactly one booking.
3. Concurrent cancellations never restore more seats than were taken.
4. A trip delete racing a join never removes a confirmed booking.
"""

import asyncio

import pytest
from sqlalchemy.dialects import postgresql

from src.domain.enums import BookingStatus
from src.domain.errors import (
    AlreadyBooked,
    AlreadyCancelled,
    NoSeatsAvailable,
    TripHasBookings,
)
from src.infrastructure.repositories import lock_trip_query
from src.services.bookings import BookingLedger
from src.services.trips import TripInventory


class TestSeatContention:
    @pytest.mark.asyncio
    async def test_joins_beyond_capacity_never_oversell(
        self, session_factory, make_trip, make_passengers, get_trip
    ):
        trip = await make_trip(seats=4)
        riders = await make_passengers(10)
        ledger = BookingLedger(session_factory)

        results = await asyncio.gather(
            *(ledger.join_trip(r.id, trip.id) for r in riders),
            return_exceptions=True,
        )

        confirmed = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, Exception)]
        assert len(confirmed) == 4
        assert all(isinstance(e, NoSeatsAvailable) for e in rejected)
        assert (await get_trip(trip.id)).available_seats == 0

        bookings = await ledger.list_trip_bookings(trip.driver_id, trip.id)
        assert len(bookings) == 4
        assert len({b.passenger_id for b in bookings}) == 4

    @pytest.mark.asyncio
    async def test_same_passenger_race_books_once(
        self, session_factory, users, make_trip, get_trip
    ):
        trip = await make_trip(seats=3)
        ledger = BookingLedger(session_factory)
        passenger_id = users["passenger1"].id

        results = await asyncio.gather(
            ledger.join_trip(passenger_id, trip.id),
            ledger.join_trip(passenger_id, trip.id),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], AlreadyBooked)
        assert (await get_trip(trip.id)).available_seats == 2

    @pytest.mark.asyncio
    async def test_double_cancel_race_restores_one_seat(
        self, session_factory, users, make_trip, get_trip
    ):
        trip = await make_trip(seats=2)
        ledger = BookingLedger(session_factory)
        await ledger.join_trip(users["passenger2"].id, trip.id)
        joined = await ledger.join_trip(users["passenger1"].id, trip.id)

        results = await asyncio.gather(
            ledger.cancel_booking(users["passenger1"].id, joined.booking.id),
            ledger.cancel_booking(users["passenger1"].id, joined.booking.id),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], AlreadyCancelled)
        ok = next(r for r in results if not isinstance(r, Exception))
        assert ok.booking.status == BookingStatus.CANCELLED
        assert (await get_trip(trip.id)).available_seats == 1


class TestDeleteAgainstJoin:
    def test_delete_locks_the_trip_row(self):
        sql = str(
            lock_trip_query(1).compile(
                dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}
            )
        )
        assert sql.rstrip().endswith("FOR UPDATE")

    @pytest.mark.asyncio
    async def test_racing_delete_never_drops_a_confirmed_booking(
        self, session_factory, users, make_trip, get_trip
    ):
        trip = await make_trip(seats=3)
        ledger = BookingLedger(session_factory)
        inventory = TripInventory(session_factory)

        joined, deleted = await asyncio.gather(
            ledger.join_trip(users["passenger1"].id, trip.id),
            inventory.delete_trip(users["driver"].id, trip.id),
            return_exceptions=True,
        )

        join_ok = not isinstance(joined, Exception)
        delete_ok = not isinstance(deleted, Exception)
        assert join_ok != delete_ok
        if join_ok:
            assert isinstance(deleted, TripHasBookings)
            assert (await get_trip(trip.id)).available_seats == 2
        else:
            assert await get_trip(trip.id) is None
            assert await ledger.list_passenger_bookings(users["passenger1"].id) == []
