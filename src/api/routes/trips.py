"""
Trip endpoints
==============

POST   /api/v1/trips           -- create a trip (DRIVER)
GET    /api/v1/trips           -- list future trips with free seats
GET    /api/v1/trips/my-trips  -- trips created by the caller (DRIVER)
POST   /api/v1/trips/search    -- matching trips for (origin, destination, time)
GET    /api/v1/trips/{trip_id} -- trip details
DELETE /api/v1/trips/{trip_id} -- delete an unbooked trip (DRIVER, owner)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from src.api.dependencies import (
    get_trip_inventory,
    get_trip_matcher,
    require_role,
)
from src.api.middleware import limiter
from src.api.schemas import TripCreateRequest, TripResponse, TripSearchRequest
from src.config import settings
from src.domain.entities import Caller
from src.domain.enums import UserRole
from src.services.matching import TripMatcher
from src.services.trips import TripInventory

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post(
    "",
    status_code=201,
    response_model=TripResponse,
    summary="Create a trip",
)
@limiter.limit(settings.rate_limit)
async def create_trip(
    request: Request,
    body: TripCreateRequest,
    caller: Caller = Depends(require_role(UserRole.DRIVER)),
    inventory: TripInventory = Depends(get_trip_inventory),
):
    trip = await inventory.create_trip(
        driver_id=caller.id,
        origin=body.origin.to_domain(),
        destination=body.destination.to_domain(),
        departure_time=body.departure_time,
        seats=body.available_seats,
    )
    return TripResponse.model_validate(trip)


@router.get(
    "",
    response_model=list[TripResponse],
    summary="List upcoming trips with free seats, soonest first",
)
@limiter.limit(settings.rate_limit)
async def list_trips(
    request: Request,
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    inventory: TripInventory = Depends(get_trip_inventory),
):
    trips = await inventory.list_open_trips(origin=origin, destination=destination)
    return [TripResponse.model_validate(t) for t in trips]


@router.get(
    "/my-trips",
    response_model=list[TripResponse],
    summary="List the caller's own trips",
)
@limiter.limit(settings.rate_limit)
async def list_my_trips(
    request: Request,
    caller: Caller = Depends(require_role(UserRole.DRIVER)),
    inventory: TripInventory = Depends(get_trip_inventory),
):
    trips = await inventory.list_driver_trips(caller.id)
    return [TripResponse.model_validate(t) for t in trips]


@router.post(
    "/search",
    response_model=list[TripResponse],
    summary="Find trips matching origin, destination and departure time",
    description=(
        "Trips departing within +/- 30 minutes whose origin and destination "
        "lie inside a ~5 km box around the requested points (or whose "
        "addresses contain the requested address when coordinates are "
        "missing).  Only trips with free seats are returned."
    ),
)
@limiter.limit(settings.rate_limit)
async def search_trips(
    request: Request,
    body: TripSearchRequest,
    matcher: TripMatcher = Depends(get_trip_matcher),
):
    trips = await matcher.find_matching_trips(
        body.origin.to_domain(), body.destination.to_domain(), body.departure_time
    )
    return [TripResponse.model_validate(t) for t in trips]


@router.get(
    "/{trip_id}",
    response_model=TripResponse,
    summary="Get a trip",
)
@limiter.limit(settings.rate_limit)
async def get_trip(
    request: Request,
    trip_id: int,
    inventory: TripInventory = Depends(get_trip_inventory),
):
    return TripResponse.model_validate(await inventory.get_trip(trip_id))


@router.delete(
    "/{trip_id}",
    status_code=204,
    summary="Delete a trip without confirmed bookings",
)
@limiter.limit(settings.rate_limit)
async def delete_trip(
    request: Request,
    trip_id: int,
    caller: Caller = Depends(require_role(UserRole.DRIVER)),
    inventory: TripInventory = Depends(get_trip_inventory),
):
    await inventory.delete_trip(caller.id, trip_id)
    return Response(status_code=204)
