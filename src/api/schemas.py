"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from src.domain.entities import Location
from src.domain.enums import BookingStatus


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# ── Shared ────────────────────────────────────────────────────────────


class LocationSchema(BaseModel):
    address: str = Field(..., min_length=1, max_length=200)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)

    model_config = {"from_attributes": True}

    @field_validator("address")
    @classmethod
    def address_not_blank(cls, value: str) -> str:
        return _not_blank(value)

    def to_domain(self) -> Location:
        return Location(address=self.address.strip(), lat=self.lat, lng=self.lng)


# ── Requests ──────────────────────────────────────────────────────────


class TripCreateRequest(BaseModel):
    origin: LocationSchema
    destination: LocationSchema
    departure_time: datetime
    available_seats: int = Field(..., ge=1, le=8)


class TripSearchRequest(BaseModel):
    origin: LocationSchema
    destination: LocationSchema
    departure_time: datetime = Field(
        ..., description="Desired departure; trips within +/- 30 min match."
    )


class BookingCreateRequest(BaseModel):
    trip_id: int


class ReviewCreateRequest(BaseModel):
    trip_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class FavoriteCreateRequest(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    origin: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=200)
    preferred_time: Optional[str] = Field(
        None,
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
        description="Preferred departure time of day, 24h HH:mm.",
    )

    @field_validator("label", "origin", "destination")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        return _not_blank(value)


# ── Responses ─────────────────────────────────────────────────────────


class TripResponse(BaseModel):
    id: int
    driver_id: int
    origin: LocationSchema
    destination: LocationSchema
    departure_time: datetime
    available_seats: int
    total_seats: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: int
    trip_id: int
    passenger_id: int
    status: BookingStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingWithTripResponse(BookingResponse):
    trip: Optional[TripResponse] = None


class BookingResultResponse(BaseModel):
    booking: BookingResponse
    trip: Optional[TripResponse] = None
    seat_restored: bool = False

    model_config = {"from_attributes": True}


class ReviewResponse(BaseModel):
    id: int
    trip_id: int
    reviewer_id: int
    driver_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReviewWithTripResponse(ReviewResponse):
    trip: Optional[TripResponse] = None


class DriverReviewsResponse(BaseModel):
    driver_id: int
    reviews: list[ReviewResponse]
    average_rating: float
    review_count: int


class FavoriteResponse(BaseModel):
    id: int
    user_id: int
    label: str
    origin: str
    destination: str
    preferred_time: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
    detail: str
