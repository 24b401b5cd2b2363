"""
Trip Matching Predicate
=======================

A passenger's desired ``(origin, destination, departure_time)`` matches a
trip when:

1. **Time window**  -- the trip departs inside
   ``[departure_time - window, departure_time + window]`` (inclusive,
   default 30 min).
2. **Proximity**    -- if both the query and the trip carry coordinates,
   the trip's point lies inside a square box of ``+/- radius`` decimal
   degrees (default 0.045 deg, roughly 5 km) around the query point.
   Otherwise the query address must appear, case-insensitively, inside
   the trip's address.
3. **Capacity**     -- the trip still has at least one free seat.

Assumption
----------
The bounding box is deliberately not geodesic: a degree of longitude
shrinks towards the poles, so the box is narrower in km at high
latitudes.  Matching is a coarse pre-filter, not a distance guarantee.

``TripRepository.search_matching`` turns these helpers into one SQL query.

Complexity: O(1) per candidate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .clock import as_utc

DEFAULT_WINDOW_MINUTES = 30
DEFAULT_RADIUS_DEGREES = 0.045


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


def departure_window(
    departure_time: datetime, minutes: int = DEFAULT_WINDOW_MINUTES
) -> tuple[datetime, datetime]:
    """Inclusive ``(earliest, latest)`` departure bounds around *departure_time*."""
    centre = as_utc(departure_time)
    delta = timedelta(minutes=minutes)
    return centre - delta, centre + delta


def bounding_box(
    lat: float, lng: float, radius: float = DEFAULT_RADIUS_DEGREES
) -> BoundingBox:
    return BoundingBox(
        min_lat=lat - radius,
        max_lat=lat + radius,
        min_lng=lng - radius,
        max_lng=lng + radius,
    )

