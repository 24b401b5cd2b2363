"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- liveness plus a trivial database round-trip
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.api.dependencies import get_session_factory
from src.api.middleware import limiter
from src.api.schemas import HealthResponse
from src.config import settings

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
@limiter.limit(settings.rate_limit)
async def health(
    request: Request,
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    async with factory() as session:
        await session.execute(text("SELECT 1"))
    return HealthResponse()
