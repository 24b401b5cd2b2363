"""
Booking endpoints
=================

POST  /api/v1/bookings                  -- join a trip (PASSENGER)
GET   /api/v1/bookings/my-bookings      -- the caller's bookings
GET   /api/v1/bookings/trip/{trip_id}   -- confirmed bookings of own trip (DRIVER)
PATCH /api/v1/bookings/{booking_id}/cancel -- cancel own booking (PASSENGER)
"""

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_booking_ledger, get_current_user, require_role
from src.api.middleware import limiter
from src.api.schemas import (
    BookingCreateRequest,
    BookingResponse,
    BookingResultResponse,
    BookingWithTripResponse,
    ErrorResponse,
)
from src.config import settings
from src.domain.entities import Caller
from src.domain.enums import UserRole
from src.services.bookings import BookingLedger

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    status_code=201,
    response_model=BookingResultResponse,
    summary="Join a trip",
    description=(
        "Claims one seat.  The seat decrement and the booking insert commit "
        "together or not at all."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "No seats / departed / own trip"},
        404: {"model": ErrorResponse, "description": "Trip not found"},
        409: {"model": ErrorResponse, "description": "Already booked"},
    },
)
@limiter.limit(settings.rate_limit)
async def join_trip(
    request: Request,
    body: BookingCreateRequest,
    caller: Caller = Depends(require_role(UserRole.PASSENGER)),
    ledger: BookingLedger = Depends(get_booking_ledger),
):
    result = await ledger.join_trip(caller.id, body.trip_id)
    return BookingResultResponse.model_validate(result)


@router.get(
    "/my-bookings",
    response_model=list[BookingWithTripResponse],
    summary="List the caller's bookings, newest first",
)
@limiter.limit(settings.rate_limit)
async def list_my_bookings(
    request: Request,
    caller: Caller = Depends(get_current_user),
    ledger: BookingLedger = Depends(get_booking_ledger),
):
    bookings = await ledger.list_passenger_bookings(caller.id)
    return [BookingWithTripResponse.model_validate(b) for b in bookings]


@router.get(
    "/trip/{trip_id}",
    response_model=list[BookingResponse],
    summary="List confirmed bookings of one of the caller's trips",
)
@limiter.limit(settings.rate_limit)
async def list_trip_bookings(
    request: Request,
    trip_id: int,
    caller: Caller = Depends(require_role(UserRole.DRIVER)),
    ledger: BookingLedger = Depends(get_booking_ledger),
):
    bookings = await ledger.list_trip_bookings(caller.id, trip_id)
    return [BookingResponse.model_validate(b) for b in bookings]


@router.patch(
    "/{booking_id}/cancel",
    response_model=BookingResultResponse,
    summary="Cancel a booking",
    description=(
        "Transitions a CONFIRMED booking to CANCELLED and gives the seat "
        "back if the trip has not departed.  Cancelling twice is rejected."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Already cancelled"},
        403: {"model": ErrorResponse, "description": "Not the booking owner"},
        404: {"model": ErrorResponse, "description": "Booking not found"},
    },
)
@limiter.limit(settings.rate_limit)
async def cancel_booking(
    request: Request,
    booking_id: int,
    caller: Caller = Depends(require_role(UserRole.PASSENGER)),
    ledger: BookingLedger = Depends(get_booking_ledger),
):
    result = await ledger.cancel_booking(caller.id, booking_id)
    return BookingResultResponse.model_validate(result)
