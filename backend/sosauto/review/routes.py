"""
backend/sosauto/review/routes.py

Review Routes
Handles review operations for completed bookings:
- Submit a review (Authenticated Client of the booking)
- List reviews for a provider (Public)
- Check whether a booking has been reviewed (Public)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.core.dependencies import get_cache, get_current_user
from sosauto.core.limiter import limiter
from sosauto.database.models import User
from sosauto.database.session import get_db
from sosauto.review import schemas
from sosauto.review.services import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
CacheDep = Annotated[Redis | None, Depends(get_cache)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]


# ---------------------------------------------------
# Submit Review Endpoint
# ---------------------------------------------------
@router.post(
    "",
    response_model=schemas.ReviewRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Review",
    description="Submit a 1-5 star review for one of your completed bookings.",
)
@limiter.limit("5/minute")
async def submit_review(
    request: Request,
    payload: schemas.ReviewCreate,
    db: DBDep,
    cache: CacheDep,
    current_user: AuthenticatedUserDep,
) -> schemas.ReviewRead:
    return await ReviewService(db, cache).submit_review(current_user, payload)


# ---------------------------------------------------
# Public Review Endpoints
# ---------------------------------------------------
@router.get(
    "/provider/{provider_id}",
    response_model=list[schemas.ReviewRead],
    status_code=status.HTTP_200_OK,
    summary="List Provider Reviews",
    description="Latest 50 reviews of a provider, newest first.",
)
@limiter.limit("30/minute")
async def list_provider_reviews(
    request: Request,
    provider_id: UUID,
    db: DBDep,
    cache: CacheDep,
) -> list[schemas.ReviewRead]:
    return await ReviewService(db, cache).get_reviews_for_provider(provider_id)


@router.get(
    "/booking/{booking_id}",
    response_model=schemas.ReviewStatus,
    status_code=status.HTTP_200_OK,
    summary="Booking Review Status",
    description="Whether the booking has a review, and the review when it does.",
)
@limiter.limit("30/minute")
async def get_booking_review(
    request: Request,
    booking_id: UUID,
    db: DBDep,
) -> schemas.ReviewStatus:
    return await ReviewService(db).get_review_status(booking_id)
