"""Tests the Redis booking notifier (mocked Redis)."""

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from src.infrastructure import notifications
from src.infrastructure.notifications import BookingNotifier, build_notifier


def _booking_and_trip():
    trip = SimpleNamespace(
        id=3,
        driver_id=4,
        departure_time=datetime(2026, 5, 1, 8, 30, tzinfo=timezone.utc),
        origin_address="Trento Centro",
        destination_address="Rovereto",
    )
    booking = SimpleNamespace(id=7, passenger_id=12)
    return booking, trip


class TestBookingNotifier:
    @pytest.mark.asyncio
    async def test_confirmed_booking_is_pushed_as_json(self):
        mock_redis = AsyncMock()
        mock_redis.rpush = AsyncMock(return_value=1)
        booking, trip = _booking_and_trip()

        await BookingNotifier(mock_redis, "q:test").booking_confirmed(booking, trip)

        mock_redis.rpush.assert_awaited_once()
        queue, raw = mock_redis.rpush.call_args.args
        assert queue == "q:test"
        assert json.loads(raw) == {
            "event": "booking.confirmed",
            "booking_id": 7,
            "trip_id": 3,
            "passenger_id": 12,
            "driver_id": 4,
            "departure_time": "2026-05-01T08:30:00+00:00",
            "origin": "Trento Centro",
            "destination": "Rovereto",
        }

    @pytest.mark.asyncio
    async def test_redis_errors_propagate_to_the_caller(self):
        mock_redis = AsyncMock()
        mock_redis.rpush = AsyncMock(side_effect=ConnectionError("down"))
        booking, trip = _booking_and_trip()

        with pytest.raises(ConnectionError):
            await BookingNotifier(mock_redis, "q").booking_confirmed(booking, trip)


class TestBuildNotifier:
    @pytest.mark.asyncio
    async def test_disabled_returns_none(self):
        with patch.object(notifications.settings, "notifications_enabled", False):
            assert await build_notifier() is None

    @pytest.mark.asyncio
    async def test_enabled_uses_configured_queue(self):
        fake_client = AsyncMock()
        with patch.object(
            notifications.settings, "notifications_enabled", True
        ), patch.object(
            notifications, "get_redis", AsyncMock(return_value=fake_client)
        ):
            notifier = await build_notifier()

        assert notifier.redis is fake_client
        assert notifier.queue == notifications.settings.notification_queue
