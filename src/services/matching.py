"""
Trip Matcher
============

Read-only query engine: translates a desired ``(origin, destination,
departure_time)`` into one bounded search over the trip inventory.  The
matching rule itself lives in ``src.domain.matching``.

No ordering contract: results come back in storage order.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config import settings
from src.domain.entities import Location
from src.domain.errors import ValidationError
from src.domain.matching import departure_window
from src.infrastructure.models import TripModel
from src.infrastructure.repositories import TripRepository

logger = logging.getLogger(__name__)


class TripMatcher:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        window_minutes: int = settings.match_window_minutes,
        radius_degrees: float = settings.match_radius_degrees,
    ):
        self.session_factory = session_factory
        self.window_minutes = window_minutes
        self.radius_degrees = radius_degrees

    async def find_matching_trips(
        self, origin: Location, destination: Location, departure_time: datetime
    ) -> list[TripModel]:
        if not origin.address.strip() or not destination.address.strip():
            raise ValidationError("Origin and destination addresses are required")
        earliest, latest = departure_window(departure_time, self.window_minutes)
        async with self.session_factory() as session:
            trips = await TripRepository(session).search_matching(
                origin=origin,
                destination=destination,
                earliest=earliest,
                latest=latest,
                radius=self.radius_degrees,
            )
        logger.debug(
            "Trip search %r -> %r around %s: %d match(es)",
            origin.address,
            destination.address,
            departure_time.isoformat(),
            len(trips),
        )
        return trips
