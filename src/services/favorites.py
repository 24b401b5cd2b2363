"""Saved origin/destination searches a user can re-run quickly."""

from __future__ import annotations

import re
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.infrastructure.models import FavoriteSearchModel
from src.infrastructure.repositories import FavoriteRepository, UserRepository

PREFERRED_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class FavoriteSearches:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_favorite(
        self,
        *,
        user_id: int,
        label: str,
        origin: str,
        destination: str,
        preferred_time: Optional[str] = None,
    ) -> FavoriteSearchModel:
        if preferred_time and not PREFERRED_TIME_RE.match(preferred_time):
            raise ValidationError("Preferred time must be in HH:mm format")
        try:
            async with self.session_factory() as session, session.begin():
                if await UserRepository(session).get_by_id(user_id) is None:
                    raise NotFoundError("User not found")
                favorite = await FavoriteRepository(session).create(
                    FavoriteSearchModel(
                        user_id=user_id,
                        label=label.strip(),
                        origin=origin.strip(),
                        destination=destination.strip(),
                        preferred_time=preferred_time or None,
                    )
                )
        except IntegrityError:
            raise ConflictError(
                "You already have a favorite with this origin and destination"
            ) from None
        return favorite

    async def list_favorites(self, user_id: int) -> list[FavoriteSearchModel]:
        async with self.session_factory() as session:
            return await FavoriteRepository(session).list_for_user(user_id)

    async def delete_favorite(self, user_id: int, favorite_id: int) -> None:
        async with self.session_factory() as session, session.begin():
            repo = FavoriteRepository(session)
            favorite = await repo.get_by_id(favorite_id)
            if favorite is None:
                raise NotFoundError("Favorite not found")
            if favorite.user_id != user_id:
                raise AuthorizationError("You can only delete your own favorites")
            await repo.delete(favorite)
