"""Saved searches: validation, uniqueness and ownership."""

import pytest

from src.domain.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.services.favorites import FavoriteSearches


class TestFavoriteSearches:
    @pytest.mark.asyncio
    async def test_create_and_list(self, session_factory, users):
        favorites = FavoriteSearches(session_factory)
        user_id = users["passenger1"].id

        created = await favorites.create_favorite(
            user_id=user_id,
            label=" Commute ",
            origin="Trento",
            destination="Rovereto",
            preferred_time="08:30",
        )

        assert created.label == "Commute"
        assert [f.id for f in await favorites.list_favorites(user_id)] == [created.id]

    @pytest.mark.asyncio
    async def test_same_route_twice_conflicts(self, session_factory, users):
        favorites = FavoriteSearches(session_factory)
        kwargs = dict(
            user_id=users["passenger1"].id,
            label="Commute",
            origin="Trento",
            destination="Rovereto",
        )
        await favorites.create_favorite(**kwargs)

        with pytest.raises(ConflictError):
            await favorites.create_favorite(**{**kwargs, "label": "Again"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["8:30", "24:00", "12:60", "noon"])
    async def test_preferred_time_format(self, session_factory, users, value):
        with pytest.raises(ValidationError):
            await FavoriteSearches(session_factory).create_favorite(
                user_id=users["passenger1"].id,
                label="x",
                origin="a",
                destination="b",
                preferred_time=value,
            )

    @pytest.mark.asyncio
    async def test_only_owner_may_delete(self, session_factory, users):
        favorites = FavoriteSearches(session_factory)
        created = await favorites.create_favorite(
            user_id=users["passenger1"].id,
            label="Commute",
            origin="Trento",
            destination="Rovereto",
        )

        with pytest.raises(AuthorizationError):
            await favorites.delete_favorite(users["passenger2"].id, created.id)

        await favorites.delete_favorite(users["passenger1"].id, created.id)
        assert await favorites.list_favorites(users["passenger1"].id) == []

    @pytest.mark.asyncio
    async def test_delete_unknown(self, session_factory, users):
        with pytest.raises(NotFoundError):
            await FavoriteSearches(session_factory).delete_favorite(
                users["passenger1"].id, 42
            )
