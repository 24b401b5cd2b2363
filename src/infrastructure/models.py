"""
SQLAlchemy ORM models  (maps to PostgreSQL; SQLite in tests).

Tables
------
* ``users``              -- drivers and passengers (provisioned by auth)
* ``trips``              -- driver-offered rides with a seat counter
* ``bookings``           -- a passenger's claim on one seat of a trip
* ``reviews``            -- passenger -> driver ratings after departure
* ``favorite_searches``  -- saved origin/destination pairs per user

Constraints
-----------
* CHECK ``0 <= available_seats <= total_seats`` on ``trips``: the database
  refuses any oversell or over-restore even if a caller skips the guard.
* Partial UNIQUE on ``bookings (trip_id, passenger_id) WHERE status <>
  'CANCELLED'``: at most one active booking per passenger per trip, while
  still allowing a re-booking after a cancellation.
* UNIQUE ``reviews (trip_id, reviewer_id)`` and
  ``favorite_searches (user_id, origin, destination)``.

Indexes
-------
* **B-Tree** on ``departure_time`` and on origin / destination
  ``(lat, lng)`` pairs for the matching query's range scans.
* **B-Tree** on foreign keys used by the listing endpoints.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from .database import Base, UTCDateTime
from src.domain.entities import Location
from src.domain.enums import BookingStatus, UserRole


class TimestampMixin:
    created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        UTCDateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # fetch server-generated timestamps on flush; async sessions cannot lazy-load
    __mapper_args__ = {"eager_defaults": True}


class UserModel(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(Enum(UserRole), nullable=False)


class TripModel(TimestampMixin, Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    origin_address = Column(String(200), nullable=False)
    origin_lat = Column(Float, nullable=True)
    origin_lng = Column(Float, nullable=True)
    destination_address = Column(String(200), nullable=False)
    destination_lat = Column(Float, nullable=True)
    destination_lng = Column(Float, nullable=True)

    departure_time = Column(UTCDateTime, nullable=False)
    available_seats = Column(Integer, nullable=False)
    total_seats = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="ck_trips_seats_non_negative"),
        CheckConstraint(
            "available_seats <= total_seats", name="ck_trips_seats_within_total"
        ),
        CheckConstraint("total_seats BETWEEN 1 AND 8", name="ck_trips_total_seats"),
        Index("idx_trips_departure", "departure_time"),
        Index("idx_trips_driver", "driver_id"),
        Index("idx_trips_origin_coords", "origin_lat", "origin_lng"),
        Index("idx_trips_destination_coords", "destination_lat", "destination_lng"),
        Index("idx_trips_addresses", "origin_address", "destination_address"),
    )

    @property
    def origin(self) -> Location:
        return Location(self.origin_address, self.origin_lat, self.origin_lng)

    @property
    def destination(self) -> Location:
        return Location(
            self.destination_address, self.destination_lat, self.destination_lng
        )


class BookingModel(TimestampMixin, Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(
        Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    passenger_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(
        Enum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False
    )

    trip = relationship(TripModel, lazy="raise")

    __table_args__ = (
        Index(
            "uq_bookings_active_trip_passenger",
            "trip_id",
            "passenger_id",
            unique=True,
            postgresql_where=text("status <> 'CANCELLED'"),
            sqlite_where=text("status <> 'CANCELLED'"),
        ),
        Index("idx_bookings_passenger", "passenger_id"),
        Index("idx_bookings_trip", "trip_id"),
    )


class ReviewModel(TimestampMixin, Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(
        Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(String(500), nullable=True)

    trip = relationship(TripModel, lazy="raise")

    __table_args__ = (
        UniqueConstraint("trip_id", "reviewer_id", name="uq_reviews_trip_reviewer"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),
        Index("idx_reviews_driver", "driver_id"),
        Index("idx_reviews_reviewer", "reviewer_id"),
    )


class FavoriteSearchModel(TimestampMixin, Base):
    __tablename__ = "favorite_searches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    label = Column(String(100), nullable=False)
    origin = Column(String(200), nullable=False)
    destination = Column(String(200), nullable=False)
    preferred_time = Column(String(5), nullable=True)  # "HH:mm"

    __table_args__ = (
        UniqueConstraint(
            "user_id", "origin", "destination", name="uq_favorites_user_route"
        ),
        Index("idx_favorites_user", "user_id"),
    )
