"""
backend/sosauto/review/services.py

Review Services
Business logic for booking reviews:
- Submit a review (one per booking, completed bookings only)
- Recompute a provider's rating and review count from all its reviews
- List a provider's reviews (public, cached in Redis when configured)
- Check whether a booking has been reviewed
"""

import json
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from redis.asyncio import Redis
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.booking.models import Booking
from sosauto.core import policy
from sosauto.core.config import settings
from sosauto.database.enums import BookingStatus
from sosauto.database.models import User
from sosauto.provider.models import ServiceProvider
from sosauto.review import models, schemas

logger = logging.getLogger(__name__)

# --- Cache Namespaces ---
CACHE_PREFIX = "cache:sosauto:"
REVIEW_LIST_PROVIDER_NS = "review:list:provider"

PROVIDER_REVIEWS_LIMIT = 50
ALREADY_REVIEWED = "You have already reviewed this booking"


def _cache_key(namespace: str, identifier: Any) -> str:
    """Generate a simple cache key."""
    return f"{CACHE_PREFIX}{namespace}:{identifier}"


def round_rating(value: float | Decimal | None) -> float:
    """Rounds an average rating to one decimal, halves away from zero."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------
# Review Service
# ---------------------------------------------------
class ReviewService:
    """Service layer for booking reviews with optional caching."""

    def __init__(self, db: AsyncSession, cache: Redis | None = None) -> None:
        self.db = db
        self.cache = cache

    async def _invalidate_provider_reviews(self, provider_id: UUID) -> None:
        if not self.cache:
            return
        key = _cache_key(REVIEW_LIST_PROVIDER_NS, provider_id)
        try:
            await self.cache.delete(key)
            logger.info(f"[CACHE] Invalidated review list for provider {provider_id}")
        except Exception as e:
            logger.error(f"[CACHE ERROR] Failed deleting {key}: {e}")

    # ---------------------------------------------------
    # Review Submission
    # ---------------------------------------------------
    async def submit_review(self, client: User, data: schemas.ReviewCreate) -> schemas.ReviewRead:
        """
        Submit a review for a completed booking.
        Checks run in order and the first failure wins:
        booking exists (404), caller is its client (403), booking is
        COMPLETED (400), booking not reviewed yet (400).
        The unique index on booking_id settles concurrent submissions.
        """
        logger.info(f"[REVIEW] Client {client.id} submitting review for booking {data.booking_id}")

        booking = await self.db.get(Booking, data.booking_id)
        if not booking:
            logger.warning(f"[REVIEW] Booking not found: booking_id={data.booking_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

        if not policy.can_review_booking(client, booking):
            logger.warning(f"[REVIEW] Client {client.id} does not own booking {booking.id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only review your own bookings",
            )

        if booking.status != BookingStatus.COMPLETED:
            logger.warning(f"[REVIEW] Booking {booking.id} is {booking.status.value}, not COMPLETED")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You can only review completed bookings",
            )

        if await self._find_by_booking(booking.id):
            logger.warning(f"[REVIEW] Duplicate review attempt: booking_id={booking.id}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ALREADY_REVIEWED)

        if data.provider_id != booking.provider_id:
            logger.warning(
                f"[REVIEW] Payload provider {data.provider_id} does not match booking provider "
                f"{booking.provider_id}; using the booking's provider"
            )
        provider_id = booking.provider_id

        # Serialise rating recomputation per provider
        await self.db.execute(
            select(ServiceProvider.id).filter(ServiceProvider.id == provider_id).with_for_update()
        )

        review = models.Review(
            provider_id=provider_id,
            client_id=client.id,
            booking_id=booking.id,
            client_name=client.name,
            rating=data.rating,
            comment=data.comment,
        )
        self.db.add(review)

        try:
            await self.db.flush()
            await self.recompute_provider_rating(provider_id)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"[REVIEW] Unique constraint hit for booking {data.booking_id}: {e.orig}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ALREADY_REVIEWED)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"[REVIEW] Failed to commit review: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to submit review."
            )

        await self._invalidate_provider_reviews(provider_id)
        logger.info(f"[REVIEW] Review created successfully: review_id={review.id}")
        return schemas.ReviewRead.model_validate(review)

    async def _find_by_booking(self, booking_id: UUID) -> models.Review | None:
        result = await self.db.execute(
            select(models.Review).filter(models.Review.booking_id == booking_id)
        )
        return result.scalars().first()

    # ---------------------------------------------------
    # Rating Aggregation
    # ---------------------------------------------------
    async def recompute_provider_rating(self, provider_id: UUID) -> tuple[float, int]:
        """
        Full re-aggregation over every review of the provider, written onto
        the provider row within the caller's transaction.
        """
        result = await self.db.execute(
            select(func.avg(models.Review.rating), func.count(models.Review.id)).filter(
                models.Review.provider_id == provider_id
            )
        )
        avg_rating, total_reviews = result.one()
        rating = round_rating(avg_rating)
        count = int(total_reviews or 0)

        provider = await self.db.get(ServiceProvider, provider_id)
        if provider is not None:
            provider.rating = rating
            provider.total_reviews = count
        logger.info(f"[REVIEW] Provider {provider_id} rating -> {rating} ({count} reviews)")
        return rating, count

    # ---------------------------------------------------
    # Review Retrieval
    # ---------------------------------------------------
    async def get_reviews_for_provider(self, provider_id: UUID) -> list[schemas.ReviewRead]:
        """Newest reviews of a provider, at most 50, with cache support."""
        cache_key = _cache_key(REVIEW_LIST_PROVIDER_NS, provider_id)
        if self.cache:
            try:
                cached_data = await self.cache.get(cache_key)
                if cached_data:
                    logger.info(f"[CACHE HIT] Provider review list {provider_id}")
                    return [schemas.ReviewRead.model_validate(i) for i in json.loads(cached_data)]
            except Exception as e:
                logger.error(f"[CACHE READ ERROR] Provider review list {provider_id}: {e}")

        logger.info(f"[CACHE MISS] Retrieving reviews for provider_id={provider_id} from DB")
        result = await self.db.execute(
            select(models.Review)
            .filter(models.Review.provider_id == provider_id)
            .order_by(models.Review.created_at.desc())
            .limit(PROVIDER_REVIEWS_LIMIT)
        )
        reviews = [schemas.ReviewRead.model_validate(r) for r in result.scalars().all()]

        if self.cache:
            try:
                payload = json.dumps([r.model_dump(mode="json") for r in reviews])
                await self.cache.set(cache_key, payload, ex=settings.CACHE_TTL_SECONDS)
                logger.info(f"[CACHE SET] Provider review list {provider_id}")
            except Exception as e:
                logger.error(f"[CACHE WRITE ERROR] Provider review list {provider_id}: {e}")

        return reviews

    async def get_review_status(self, booking_id: UUID) -> schemas.ReviewStatus:
        review = await self._find_by_booking(booking_id)
        return schemas.ReviewStatus(
            reviewed=review is not None,
            review=schemas.ReviewRead.model_validate(review) if review else None,
        )
