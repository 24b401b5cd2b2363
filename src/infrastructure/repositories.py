"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.

Seat inventory is mutated exclusively through guarded single-statement
UPDATEs (``decrement_seat_if_available`` / ``increment_seat``).  The guard
and the write happen inside one statement, so the database's row lock
linearises concurrent callers and no read-modify-write race exists.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import (
    BookingModel,
    FavoriteSearchModel,
    ReviewModel,
    TripModel,
    UserModel,
)
from src.domain.entities import Location
from src.domain.enums import BookingStatus, statuses_leading_to
from src.domain.matching import bounding_box


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_trip(
        self,
        *,
        driver_id: int,
        origin: Location,
        destination: Location,
        departure_time: datetime,
        seats: int,
    ) -> TripModel:
        trip = TripModel(
            driver_id=driver_id,
            origin_address=origin.address,
            origin_lat=origin.lat,
            origin_lng=origin.lng,
            destination_address=destination.address,
            destination_lat=destination.lat,
            destination_lng=destination.lng,
            departure_time=departure_time,
            available_seats=seats,
            total_seats=seats,
        )
        self.session.add(trip)
        await self.session.flush()
        return trip

    async def get_by_id(
        self, trip_id: int, *, refresh: bool = False
    ) -> Optional[TripModel]:
        return await self.session.get(TripModel, trip_id, populate_existing=refresh)

    async def get_for_update(self, trip_id: int) -> Optional[TripModel]:
        """SELECT ... FOR UPDATE; serialises with the guarded seat UPDATEs."""
        result = await self.session.execute(lock_trip_query(trip_id))
        return result.scalar_one_or_none()

    async def decrement_seat_if_available(self, trip_id: int) -> Optional[TripModel]:
        """Claim one seat.  Returns the updated trip, or ``None`` if sold out."""
        result = await self.session.execute(
            update(TripModel)
            .where(TripModel.id == trip_id, TripModel.available_seats > 0)
            .values(
                available_seats=TripModel.available_seats - 1, updated_at=func.now()
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return await self.get_by_id(trip_id, refresh=True)

    async def increment_seat(self, trip_id: int, now: datetime) -> bool:
        """Give one seat back unless the trip has departed or is already full."""
        result = await self.session.execute(
            update(TripModel)
            .where(
                TripModel.id == trip_id,
                TripModel.departure_time > now,
                TripModel.available_seats < TripModel.total_seats,
            )
            .values(
                available_seats=TripModel.available_seats + 1, updated_at=func.now()
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def delete_if_unbooked(self, trip_id: int, driver_id: int) -> bool:
        """DELETE guarded on ownership and on zero CONFIRMED bookings."""
        has_confirmed = exists().where(
            BookingModel.trip_id == trip_id,
            BookingModel.status == BookingStatus.CONFIRMED,
        )
        result = await self.session.execute(
            delete(TripModel)
            .where(
                TripModel.id == trip_id,
                TripModel.driver_id == driver_id,
                ~has_confirmed,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def list_open(
        self,
        now: datetime,
        origin: str | None = None,
        destination: str | None = None,
    ) -> list[TripModel]:
        query = select(TripModel).where(
            TripModel.departure_time > now, TripModel.available_seats > 0
        )
        if origin:
            query = query.where(TripModel.origin_address.icontains(origin, autoescape=True))
        if destination:
            query = query.where(
                TripModel.destination_address.icontains(destination, autoescape=True)
            )
        result = await self.session.execute(query.order_by(TripModel.departure_time))
        return list(result.scalars().all())

    async def list_for_driver(self, driver_id: int) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.driver_id == driver_id)
            .order_by(TripModel.departure_time.desc())
        )
        return list(result.scalars().all())

    async def search_matching(
        self,
        *,
        origin: Location,
        destination: Location,
        earliest: datetime,
        latest: datetime,
        radius: float,
    ) -> list[TripModel]:
        """One bounded query: time window + free seats + both endpoints."""
        result = await self.session.execute(
            select(TripModel).where(
                TripModel.departure_time >= earliest,
                TripModel.departure_time <= latest,
                TripModel.available_seats > 0,
                _location_clause(
                    origin,
                    TripModel.origin_address,
                    TripModel.origin_lat,
                    TripModel.origin_lng,
                    radius,
                ),
                _location_clause(
                    destination,
                    TripModel.destination_address,
                    TripModel.destination_lat,
                    TripModel.destination_lng,
                    radius,
                ),
            )
        )
        return list(result.scalars().all())


def lock_trip_query(trip_id: int):
    # SQLite has no row locks and omits FOR UPDATE; it serialises writers instead
    return select(TripModel).where(TripModel.id == trip_id).with_for_update()


def _location_clause(query: Location, address_col, lat_col, lng_col, radius: float):
    """Bounding box when both sides have coordinates, address substring otherwise."""
    address_match = address_col.icontains(query.address.strip(), autoescape=True)
    if not query.has_coordinates:
        return address_match

    box = bounding_box(query.lat, query.lng, radius)
    candidate_has_coords = and_(lat_col.is_not(None), lng_col.is_not(None))
    return or_(
        and_(
            candidate_has_coords,
            lat_col.between(box.min_lat, box.max_lat),
            lng_col.between(box.min_lng, box.max_lng),
        ),
        and_(~candidate_has_coords, address_match),
    )


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_booking(
        self,
        *,
        trip_id: int,
        passenger_id: int,
        status: BookingStatus = BookingStatus.CONFIRMED,
    ) -> BookingModel:
        booking = BookingModel(trip_id=trip_id, passenger_id=passenger_id, status=status)
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_by_id(
        self, booking_id: int, *, refresh: bool = False
    ) -> Optional[BookingModel]:
        return await self.session.get(
            BookingModel, booking_id, populate_existing=refresh
        )

    async def get_active(self, trip_id: int, passenger_id: int) -> Optional[BookingModel]:
        result = await self.session.execute(
            select(BookingModel).where(
                BookingModel.trip_id == trip_id,
                BookingModel.passenger_id == passenger_id,
                BookingModel.status != BookingStatus.CANCELLED,
            )
        )
        return result.scalar_one_or_none()

    async def get_confirmed(
        self, trip_id: int, passenger_id: int
    ) -> Optional[BookingModel]:
        result = await self.session.execute(
            select(BookingModel).where(
                BookingModel.trip_id == trip_id,
                BookingModel.passenger_id == passenger_id,
                BookingModel.status == BookingStatus.CONFIRMED,
            )
        )
        return result.scalar_one_or_none()

    async def cancel_if_active(self, booking_id: int) -> bool:
        """Guarded status flip; ``False`` when the booking is already cancelled."""
        result = await self.session.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status.in_(statuses_leading_to(BookingStatus.CANCELLED)),
            )
            .values(status=BookingStatus.CANCELLED, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def list_for_passenger(self, passenger_id: int) -> list[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .options(selectinload(BookingModel.trip))
            .where(BookingModel.passenger_id == passenger_id)
            .order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_confirmed_for_trip(self, trip_id: int) -> list[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.trip_id == trip_id,
                BookingModel.status == BookingStatus.CONFIRMED,
            )
            .order_by(BookingModel.id)
        )
        return list(result.scalars().all())

    async def count_confirmed(self, trip_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(BookingModel)
            .where(
                BookingModel.trip_id == trip_id,
                BookingModel.status == BookingStatus.CONFIRMED,
            )
        )
        return result.scalar() or 0


class ReviewRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_review(
        self,
        *,
        trip_id: int,
        reviewer_id: int,
        driver_id: int,
        rating: int,
        comment: str | None = None,
    ) -> ReviewModel:
        review = ReviewModel(
            trip_id=trip_id,
            reviewer_id=reviewer_id,
            driver_id=driver_id,
            rating=rating,
            comment=comment,
        )
        self.session.add(review)
        await self.session.flush()
        return review

    async def get_for_trip_and_reviewer(
        self, trip_id: int, reviewer_id: int
    ) -> Optional[ReviewModel]:
        result = await self.session.execute(
            select(ReviewModel).where(
                ReviewModel.trip_id == trip_id,
                ReviewModel.reviewer_id == reviewer_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_driver(self, driver_id: int) -> list[ReviewModel]:
        result = await self.session.execute(
            select(ReviewModel)
            .where(ReviewModel.driver_id == driver_id)
            .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_for_reviewer(self, reviewer_id: int) -> list[ReviewModel]:
        result = await self.session.execute(
            select(ReviewModel)
            .options(selectinload(ReviewModel.trip))
            .where(ReviewModel.reviewer_id == reviewer_id)
            .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
        )
        return list(result.scalars().all())

    async def rating_stats(self, driver_id: int) -> tuple[Optional[float], int]:
        """Raw ``(AVG(rating), COUNT(*))`` recomputed from the review rows."""
        result = await self.session.execute(
            select(func.avg(ReviewModel.rating), func.count(ReviewModel.id)).where(
                ReviewModel.driver_id == driver_id
            )
        )
        average, count = result.one()
        return average, count or 0


class FavoriteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, favorite: FavoriteSearchModel) -> FavoriteSearchModel:
        self.session.add(favorite)
        await self.session.flush()
        return favorite

    async def get_by_id(self, favorite_id: int) -> Optional[FavoriteSearchModel]:
        return await self.session.get(FavoriteSearchModel, favorite_id)

    async def list_for_user(self, user_id: int) -> list[FavoriteSearchModel]:
        result = await self.session.execute(
            select(FavoriteSearchModel)
            .where(FavoriteSearchModel.user_id == user_id)
            .order_by(FavoriteSearchModel.created_at.desc(), FavoriteSearchModel.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, favorite: FavoriteSearchModel) -> None:
        await self.session.delete(favorite)
        await self.session.flush()


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)
