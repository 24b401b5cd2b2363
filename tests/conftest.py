"""
Shared test fixtures.

Uses a file-backed SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The file lives in ``tmp_path`` and runs in
WAL mode, so every pooled connection is a real competing writer and the
concurrency tests exercise the guarded UPDATEs for real.
"""

from datetime import timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.api.app import create_app
from src.api.dependencies import get_notifier, get_session_factory
from src.api.middleware import limiter
from src.domain.clock import utcnow
from src.domain.enums import UserRole
from src.infrastructure.database import Base
from src.infrastructure.models import TripModel, UserModel


def _enable_wal_and_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'carpool.db'}", echo=False
    )
    event.listen(test_engine.sync_engine, "connect", _enable_wal_and_foreign_keys)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ── Users ─────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def users(session_factory) -> dict[str, UserModel]:
    """One driver, a second driver, and five passengers."""
    specs = {
        "driver": ("Giulia", UserRole.DRIVER),
        "other_driver": ("Marco", UserRole.DRIVER),
        **{
            f"passenger{i}": (f"Passenger {i}", UserRole.PASSENGER)
            for i in range(1, 6)
        },
    }
    created = {}
    async with session_factory() as session, session.begin():
        for key, (name, role) in specs.items():
            user = UserModel(name=name, email=f"{key}@example.com", role=role)
            session.add(user)
            created[key] = user
    return created


@pytest_asyncio.fixture
async def make_passengers(session_factory):
    """Create *n* extra passengers for the contention tests."""

    async def _make(n: int) -> list[UserModel]:
        async with session_factory() as session, session.begin():
            passengers = [
                UserModel(
                    name=f"Rider {i}",
                    email=f"rider{i}@example.com",
                    role=UserRole.PASSENGER,
                )
                for i in range(n)
            ]
            session.add_all(passengers)
        return passengers

    return _make


# ── Trips ─────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def make_trip(session_factory, users):
    """Insert a trip directly so tests can place departures in the past."""

    async def _make(
        *,
        driver=None,
        origin=("Trento Centro", 46.0679, 11.1211),
        destination=("Rovereto", 45.8903, 11.0340),
        departs_in=timedelta(hours=2),
        departure_time=None,
        seats=3,
        available=None,
    ) -> TripModel:
        trip = TripModel(
            driver_id=(driver or users["driver"]).id,
            origin_address=origin[0],
            origin_lat=origin[1],
            origin_lng=origin[2],
            destination_address=destination[0],
            destination_lat=destination[1],
            destination_lng=destination[2],
            departure_time=departure_time or utcnow() + departs_in,
            available_seats=seats if available is None else available,
            total_seats=seats,
        )
        async with session_factory() as session, session.begin():
            session.add(trip)
        return trip

    return _make


@pytest_asyncio.fixture
async def get_trip(session_factory):
    """Fresh read of a trip row, bypassing any identity-map state."""

    async def _get(trip_id: int) -> TripModel:
        async with session_factory() as session:
            return await session.get(TripModel, trip_id)

    return _get


# ── HTTP ──────────────────────────────────────────────────────────────


@pytest.fixture
def notifier():
    mock = AsyncMock()
    mock.booking_confirmed = AsyncMock(return_value=None)
    return mock


@pytest_asyncio.fixture
async def client(session_factory, notifier) -> AsyncGenerator[AsyncClient, None]:
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_notifier] = lambda: notifier
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def as_user():
    """Identity headers the auth gateway would attach."""

    def _headers(user: UserModel) -> dict[str, str]:
        return {"X-User-Id": str(user.id), "X-User-Role": user.role.value}

    return _headers
