"""FastAPI dependency injection helpers."""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.entities import Caller
from src.domain.enums import UserRole
from src.domain.errors import AuthenticationError, AuthorizationError
from src.infrastructure.database import async_session_factory
from src.infrastructure.notifications import BookingNotifier, build_notifier
from src.services.bookings import BookingLedger
from src.services.favorites import FavoriteSearches
from src.services.matching import TripMatcher
from src.services.reviews import ReviewAggregator
from src.services.trips import TripInventory


# ── Infrastructure ────────────────────────────────────────────────────


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Services open their own unit-of-work sessions from this factory."""
    return async_session_factory


async def get_notifier() -> Optional[BookingNotifier]:
    return await build_notifier()


# ── Identity (verified upstream by the auth gateway) ──────────────────


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Caller:
    """Read the caller identity the authentication gateway attached.

    Credentials are already verified upstream; this only parses them.
    """
    if not x_user_id or not x_user_role:
        raise AuthenticationError("Access denied. No identity provided.")
    try:
        return Caller(id=int(x_user_id), role=UserRole(x_user_role.upper()))
    except ValueError:
        raise AuthenticationError("Access denied. Invalid identity.") from None


def require_role(*roles: UserRole) -> Callable:
    """Dependency factory: ``Depends(require_role(UserRole.DRIVER))``."""

    async def _checker(caller: Caller = Depends(get_current_user)) -> Caller:
        if caller.role not in roles:
            allowed = " or ".join(r.value for r in roles)
            raise AuthorizationError(
                f"Access denied. Required role: {allowed}. "
                f"Your role: {caller.role.value}"
            )
        return caller

    return _checker


# ── Services ──────────────────────────────────────────────────────────


def get_trip_inventory(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> TripInventory:
    return TripInventory(factory)


def get_trip_matcher(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> TripMatcher:
    return TripMatcher(factory)


def get_booking_ledger(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    notifier: Optional[BookingNotifier] = Depends(get_notifier),
) -> BookingLedger:
    return BookingLedger(factory, notifier=notifier)


def get_review_aggregator(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ReviewAggregator:
    return ReviewAggregator(factory)


def get_favorite_searches(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> FavoriteSearches:
    return FavoriteSearches(factory)
