"""Review aggregation: eligibility gates and the per-driver average."""

from datetime import timedelta

import pytest

from src.domain.clock import utcnow
from src.domain.errors import (
    AlreadyReviewed,
    AuthorizationError,
    NotFoundError,
    TripNotDeparted,
    ValidationError,
)
from src.domain.rating import round_half_up, summarize
from src.services.bookings import BookingLedger
from src.services.reviews import ReviewAggregator


def _after_departure():
    return utcnow() + timedelta(days=1)


class TestRounding:
    @pytest.mark.parametrize(
        "value, expected",
        [(4.25, 4.3), (4.75, 4.8), (4.5, 4.5), (3.333333, 3.3), (4.666667, 4.7)],
    )
    def test_half_up_to_one_decimal(self, value, expected):
        assert round_half_up(value) == expected

    def test_no_reviews_gives_zero(self):
        rating = summarize(None, 0)
        assert (rating.average, rating.count) == (0.0, 0)


class TestReviewAggregator:
    @pytest.fixture
    def booked_trip(self, session_factory, users, make_trip):
        """A trip departing in an hour with passengers 1 and 2 on board."""

        async def _make():
            trip = await make_trip(seats=3, departs_in=timedelta(hours=1))
            ledger = BookingLedger(session_factory)
            await ledger.join_trip(users["passenger1"].id, trip.id)
            await ledger.join_trip(users["passenger2"].id, trip.id)
            return trip

        return _make

    @pytest.mark.asyncio
    async def test_average_and_count(self, session_factory, users, booked_trip):
        trip = await booked_trip()
        aggregator = ReviewAggregator(session_factory, clock=_after_departure)

        await aggregator.create_review(
            reviewer_id=users["passenger1"].id, trip_id=trip.id, rating=4
        )
        await aggregator.create_review(
            reviewer_id=users["passenger2"].id,
            trip_id=trip.id,
            rating=5,
            comment="Great driver",
        )

        rating = await aggregator.get_driver_rating(users["driver"].id)
        assert rating.average == 4.5
        assert rating.count == 2

    @pytest.mark.asyncio
    async def test_driver_without_reviews(self, session_factory, users):
        rating = await ReviewAggregator(session_factory).get_driver_rating(
            users["other_driver"].id
        )
        assert rating.average == 0
        assert rating.count == 0

    @pytest.mark.asyncio
    async def test_review_targets_the_trip_driver(
        self, session_factory, users, booked_trip
    ):
        trip = await booked_trip()
        review = await ReviewAggregator(
            session_factory, clock=_after_departure
        ).create_review(reviewer_id=users["passenger1"].id, trip_id=trip.id, rating=3)

        assert review.driver_id == users["driver"].id
        assert review.comment is None

    @pytest.mark.asyncio
    async def test_cannot_review_before_departure(
        self, session_factory, users, booked_trip
    ):
        trip = await booked_trip()
        with pytest.raises(TripNotDeparted):
            await ReviewAggregator(session_factory).create_review(
                reviewer_id=users["passenger1"].id, trip_id=trip.id, rating=5
            )

    @pytest.mark.asyncio
    async def test_one_review_per_trip(self, session_factory, users, booked_trip):
        trip = await booked_trip()
        aggregator = ReviewAggregator(session_factory, clock=_after_departure)
        await aggregator.create_review(
            reviewer_id=users["passenger1"].id, trip_id=trip.id, rating=5
        )

        with pytest.raises(AlreadyReviewed):
            await aggregator.create_review(
                reviewer_id=users["passenger1"].id, trip_id=trip.id, rating=1
            )
        assert (await aggregator.get_driver_rating(users["driver"].id)).count == 1

    @pytest.mark.asyncio
    async def test_requires_confirmed_booking(self, session_factory, users, booked_trip):
        trip = await booked_trip()
        with pytest.raises(AuthorizationError):
            await ReviewAggregator(session_factory, clock=_after_departure).create_review(
                reviewer_id=users["passenger3"].id, trip_id=trip.id, rating=5
            )

    @pytest.mark.asyncio
    async def test_cancelled_booking_cannot_review(
        self, session_factory, users, make_trip
    ):
        trip = await make_trip(departs_in=timedelta(hours=1))
        ledger = BookingLedger(session_factory)
        joined = await ledger.join_trip(users["passenger1"].id, trip.id)
        await ledger.cancel_booking(users["passenger1"].id, joined.booking.id)

        with pytest.raises(AuthorizationError):
            await ReviewAggregator(session_factory, clock=_after_departure).create_review(
                reviewer_id=users["passenger1"].id, trip_id=trip.id, rating=4
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 6, True, 4.5])
    async def test_rating_must_be_an_integer_in_range(
        self, session_factory, users, rating
    ):
        with pytest.raises(ValidationError):
            await ReviewAggregator(session_factory).create_review(
                reviewer_id=users["passenger1"].id, trip_id=1, rating=rating
            )

    @pytest.mark.asyncio
    async def test_unknown_trip(self, session_factory, users):
        with pytest.raises(NotFoundError):
            await ReviewAggregator(session_factory).create_review(
                reviewer_id=users["passenger1"].id, trip_id=999, rating=4
            )

    @pytest.mark.asyncio
    async def test_driver_reviews_listing_carries_the_summary(
        self, session_factory, users, booked_trip
    ):
        trip = await booked_trip()
        aggregator = ReviewAggregator(session_factory, clock=_after_departure)
        for key, stars in (("passenger1", 5), ("passenger2", 4)):
            await aggregator.create_review(
                reviewer_id=users[key].id, trip_id=trip.id, rating=stars
            )

        reviews, rating = await aggregator.list_driver_reviews(users["driver"].id)
        mine = await aggregator.list_reviewer_reviews(users["passenger1"].id)

        assert len(reviews) == 2
        assert (rating.average, rating.count) == (4.5, 2)
        assert [r.trip.id for r in mine] == [trip.id]
