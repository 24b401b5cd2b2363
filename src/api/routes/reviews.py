"""
Review endpoints
================

POST /api/v1/reviews                     -- review the driver of a past trip (PASSENGER)
GET  /api/v1/reviews/driver/{driver_id}  -- a driver's reviews + average rating
GET  /api/v1/reviews/my-reviews          -- reviews written by the caller
"""

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_current_user, get_review_aggregator, require_role
from src.api.middleware import limiter
from src.api.schemas import (
    DriverReviewsResponse,
    ErrorResponse,
    ReviewCreateRequest,
    ReviewResponse,
    ReviewWithTripResponse,
)
from src.config import settings
from src.domain.entities import Caller
from src.domain.enums import UserRole
from src.services.reviews import ReviewAggregator

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post(
    "",
    status_code=201,
    response_model=ReviewResponse,
    summary="Review the driver of a departed trip",
    responses={
        400: {"model": ErrorResponse, "description": "Trip has not departed yet"},
        403: {"model": ErrorResponse, "description": "No confirmed booking"},
        409: {"model": ErrorResponse, "description": "Already reviewed"},
    },
)
@limiter.limit(settings.rate_limit)
async def create_review(
    request: Request,
    body: ReviewCreateRequest,
    caller: Caller = Depends(require_role(UserRole.PASSENGER)),
    aggregator: ReviewAggregator = Depends(get_review_aggregator),
):
    review = await aggregator.create_review(
        reviewer_id=caller.id,
        trip_id=body.trip_id,
        rating=body.rating,
        comment=body.comment,
    )
    return ReviewResponse.model_validate(review)


@router.get(
    "/driver/{driver_id}",
    response_model=DriverReviewsResponse,
    summary="List a driver's reviews with the aggregated rating",
)
@limiter.limit(settings.rate_limit)
async def get_driver_reviews(
    request: Request,
    driver_id: int,
    aggregator: ReviewAggregator = Depends(get_review_aggregator),
):
    reviews, rating = await aggregator.list_driver_reviews(driver_id)
    return DriverReviewsResponse(
        driver_id=driver_id,
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        average_rating=rating.average,
        review_count=rating.count,
    )


@router.get(
    "/my-reviews",
    response_model=list[ReviewWithTripResponse],
    summary="List reviews written by the caller",
)
@limiter.limit(settings.rate_limit)
async def list_my_reviews(
    request: Request,
    caller: Caller = Depends(get_current_user),
    aggregator: ReviewAggregator = Depends(get_review_aggregator),
):
    reviews = await aggregator.list_reviewer_reviews(caller.id)
    return [ReviewWithTripResponse.model_validate(r) for r in reviews]
