"""
review/models.py

Defines the Review model for storing booking-related feedback.
- Each review is linked to exactly one booking (unique constraint on booking_id).
- Supports star ratings and optional comments.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.schema import CheckConstraint

from sosauto.database.base import Base, utcnow

if TYPE_CHECKING:
    from sosauto.database.models import User
    from sosauto.provider.models import ServiceProvider


COMMENT_MAX_LENGTH = 1000


class Review(Base):
    """
    Review submitted by a client about a provider for one completed booking.
    Includes a star rating (1-5) and an optional comment.
    """

    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the review",
    )

    # Review content
    rating: Mapped[int] = mapped_column(Integer, nullable=False, comment="Star rating from 1 to 5")
    comment: Mapped[str] = mapped_column(
        String(COMMENT_MAX_LENGTH), nullable=False, default="", comment="Optional comment"
    )
    client_name: Mapped[str] = mapped_column(
        String(150), nullable=False, comment="Reviewer name captured at submission"
    )

    # Foreign Keys
    provider_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("service_providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Provider being reviewed",
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Client who submitted the review",
    )
    # No FK: a review outlives a deleted booking and still blocks a second review
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        unique=True,
        nullable=False,
        comment="Booking this review belongs to (one review per booking)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        comment="Timestamp when the review was created",
    )

    # Relationships
    client: Mapped["User"] = relationship("User", back_populates="given_reviews", foreign_keys=[client_id])
    provider: Mapped["ServiceProvider"] = relationship("ServiceProvider", back_populates="reviews")

    def __repr__(self) -> str:
        return f"<Review id={self.id} booking_id={self.booking_id} rating={self.rating}>"
