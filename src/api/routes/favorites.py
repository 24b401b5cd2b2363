"""
Favorite search endpoints
=========================

GET    /api/v1/favorites               -- the caller's saved searches
POST   /api/v1/favorites               -- save an origin/destination pair
DELETE /api/v1/favorites/{favorite_id} -- delete one of the caller's favorites
"""

from fastapi import APIRouter, Depends, Request, Response

from src.api.dependencies import get_current_user, get_favorite_searches
from src.api.middleware import limiter
from src.api.schemas import FavoriteCreateRequest, FavoriteResponse
from src.config import settings
from src.domain.entities import Caller
from src.services.favorites import FavoriteSearches

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get(
    "",
    response_model=list[FavoriteResponse],
    summary="List saved searches, newest first",
)
@limiter.limit(settings.rate_limit)
async def list_favorites(
    request: Request,
    caller: Caller = Depends(get_current_user),
    favorites: FavoriteSearches = Depends(get_favorite_searches),
):
    return [
        FavoriteResponse.model_validate(f)
        for f in await favorites.list_favorites(caller.id)
    ]


@router.post(
    "",
    status_code=201,
    response_model=FavoriteResponse,
    summary="Save a search",
)
@limiter.limit(settings.rate_limit)
async def create_favorite(
    request: Request,
    body: FavoriteCreateRequest,
    caller: Caller = Depends(get_current_user),
    favorites: FavoriteSearches = Depends(get_favorite_searches),
):
    favorite = await favorites.create_favorite(
        user_id=caller.id,
        label=body.label,
        origin=body.origin,
        destination=body.destination,
        preferred_time=body.preferred_time,
    )
    return FavoriteResponse.model_validate(favorite)


@router.delete(
    "/{favorite_id}",
    status_code=204,
    summary="Delete a saved search",
)
@limiter.limit(settings.rate_limit)
async def delete_favorite(
    request: Request,
    favorite_id: int,
    caller: Caller = Depends(get_current_user),
    favorites: FavoriteSearches = Depends(get_favorite_searches),
):
    await favorites.delete_favorite(caller.id, favorite_id)
    return Response(status_code=204)
