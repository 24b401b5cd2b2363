"""
Domain value objects shared by the services and the API layer.

- ``Location``: an address with optional decimal-degree coordinates.
- ``Caller``: the verified identity handed over by the auth gateway.
- ``DriverRating``: aggregated review statistics for one driver.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import UserRole


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    address: str
    lat: Optional[float] = None
    lng: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


@dataclass(frozen=True)
class Caller:
    id: int
    role: UserRole


@dataclass(frozen=True)
class DriverRating:
    average: float = 0.0
    count: int = 0
