"""
Booking notifications over a Redis list.

The API only *enqueues* an event; a separate mailer consumes the list and
delivers e-mails to the driver and the passenger.  Enqueueing happens after
the booking transaction has committed and is best-effort: callers log and
swallow any failure so a booking never depends on Redis being up.

Payload (JSON, one per ``RPUSH``)::

    {"event": "booking.confirmed", "booking_id": 7, "trip_id": 3,
     "passenger_id": 12, "driver_id": 4, "departure_time": "...",
     "origin": "Trento Centro", "destination": "Rovereto"}
"""

from __future__ import annotations

import json

import redis.asyncio as aioredis

from .models import BookingModel, TripModel
from .redis_client import get_redis
from src.config import settings


class BookingNotifier:
    def __init__(self, client: aioredis.Redis, queue: str):
        self.redis = client
        self.queue = queue

    async def booking_confirmed(self, booking: BookingModel, trip: TripModel) -> None:
        await self._publish(
            {
                "event": "booking.confirmed",
                "booking_id": booking.id,
                "trip_id": trip.id,
                "passenger_id": booking.passenger_id,
                "driver_id": trip.driver_id,
                "departure_time": trip.departure_time.isoformat(),
                "origin": trip.origin_address,
                "destination": trip.destination_address,
            }
        )

    async def _publish(self, payload: dict) -> None:
        await self.redis.rpush(self.queue, json.dumps(payload))


async def build_notifier() -> BookingNotifier | None:
    """Notifier on the shared pool, or ``None`` when notifications are off."""
    if not settings.notifications_enabled:
        return None
    return BookingNotifier(await get_redis(), settings.notification_queue)
