"""
Review Aggregator
=================

* ``create_review`` -- a passenger rates the driver of a trip they held a
  CONFIRMED booking on, once the trip has departed.  One review per
  (trip, reviewer); the unique constraint backs up the pre-check.
* ``get_driver_rating`` -- ``AVG`` / ``COUNT`` recomputed from the review
  rows on every call.  Per-driver review counts are small, so there is no
  incremental cache to keep consistent.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.clock import utcnow
from src.domain.entities import DriverRating
from src.domain.errors import (
    AlreadyReviewed,
    AuthorizationError,
    NotFoundError,
    TripNotDeparted,
    ValidationError,
)
from src.domain.rating import summarize
from src.infrastructure.models import ReviewModel
from src.infrastructure.repositories import (
    BookingRepository,
    ReviewRepository,
    TripRepository,
)

logger = logging.getLogger(__name__)

MIN_RATING, MAX_RATING = 1, 5


class ReviewAggregator:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def create_review(
        self,
        *,
        reviewer_id: int,
        trip_id: int,
        rating: int,
        comment: Optional[str] = None,
    ) -> ReviewModel:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("Rating must be an integer between 1 and 5")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError("Rating must be an integer between 1 and 5")

        try:
            async with self.session_factory() as session, session.begin():
                trip = await TripRepository(session).get_by_id(trip_id)
                if trip is None:
                    raise NotFoundError("Trip not found")
                if trip.departure_time > self.clock():
                    raise TripNotDeparted()
                if not await BookingRepository(session).get_confirmed(
                    trip_id, reviewer_id
                ):
                    raise AuthorizationError(
                        "You can only review trips you have booked"
                    )

                reviews = ReviewRepository(session)
                if await reviews.get_for_trip_and_reviewer(trip_id, reviewer_id):
                    raise AlreadyReviewed()
                review = await reviews.create_review(
                    trip_id=trip_id,
                    reviewer_id=reviewer_id,
                    driver_id=trip.driver_id,
                    rating=rating,
                    comment=comment or None,
                )
        except IntegrityError:
            raise AlreadyReviewed() from None

        logger.info(
            "Review %d: passenger %d rated driver %d -> %d",
            review.id,
            reviewer_id,
            review.driver_id,
            rating,
        )
        return review

    async def get_driver_rating(self, driver_id: int) -> DriverRating:
        async with self.session_factory() as session:
            average, count = await ReviewRepository(session).rating_stats(driver_id)
        return summarize(average, count)

    async def list_driver_reviews(
        self, driver_id: int
    ) -> tuple[list[ReviewModel], DriverRating]:
        async with self.session_factory() as session:
            repo = ReviewRepository(session)
            reviews = await repo.list_for_driver(driver_id)
            average, count = await repo.rating_stats(driver_id)
        return reviews, summarize(average, count)

    async def list_reviewer_reviews(self, reviewer_id: int) -> list[ReviewModel]:
        async with self.session_factory() as session:
            return await ReviewRepository(session).list_for_reviewer(reviewer_id)
