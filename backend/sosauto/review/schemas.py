"""
backend/sosauto/review/schemas.py

Review Schemas
Defines Pydantic schemas for booking reviews:
- ReviewCreate: Client-submitted rating and optional comment
- ReviewRead: Stored review as returned by the API
- ReviewStatus: Whether a booking has been reviewed yet
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import Field, StringConstraints

from sosauto.core.schemas import CamelModel
from sosauto.review.models import COMMENT_MAX_LENGTH

CommentText = Annotated[str, StringConstraints(strip_whitespace=True, max_length=COMMENT_MAX_LENGTH)]


# ---------------------------------------------------
# Schema for Creating a Review (Client)
# ---------------------------------------------------
class ReviewCreate(CamelModel):
    """Payload used when submitting a review for a completed booking."""

    booking_id: UUID = Field(..., description="Reviewed booking")
    provider_id: UUID = Field(..., description="Reviewed provider")
    rating: int = Field(..., ge=1, le=5, description="Star rating from 1 to 5")
    comment: CommentText = Field("", description="Optional comment")


# ---------------------------------------------------
# Schema for Reading a Review
# ---------------------------------------------------
class ReviewRead(CamelModel):
    id: UUID = Field(..., description="Review ID")
    provider_id: UUID = Field(..., description="Reviewed provider")
    client_id: UUID = Field(..., description="Reviewing client")
    booking_id: UUID = Field(..., description="Reviewed booking")
    client_name: str = Field(..., description="Reviewer name at submission time")
    rating: int = Field(..., description="Star rating from 1 to 5")
    comment: str = Field("", description="Review comment")
    created_at: datetime = Field(..., description="Submission timestamp")


class ReviewStatus(CamelModel):
    """Tells the client whether to offer a 'leave review' action."""

    reviewed: bool = Field(..., description="Whether the booking already has a review")
    review: ReviewRead | None = Field(None, description="The review, when one exists")
