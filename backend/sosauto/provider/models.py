"""
provider/models.py

Defines the ServiceProvider model.
- Public profile of a mechanic, parts shop or towing operator
- Owned by exactly one professional user account
- rating/total_reviews are derived from reviews and only written by the review service
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.schema import CheckConstraint

from sosauto.database.base import Base, utcnow
from sosauto.database.enums import GarageType, ProviderRole

if TYPE_CHECKING:
    from sosauto.booking.models import Booking
    from sosauto.database.models import User
    from sosauto.review.models import Review


class ServiceProvider(Base):
    """
    Professional's public profile and booking target.
    Only verified providers appear in public listings.
    """

    __tablename__ = "service_providers"
    __table_args__ = (CheckConstraint("rating >= 0 AND rating <= 5", name="provider_rating_range"),)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the provider profile",
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        comment="Account that manages this profile",
    )

    # Profile
    name: Mapped[str] = mapped_column(String(150), nullable=False, comment="Business name")
    role: Mapped[ProviderRole] = mapped_column(
        Enum(ProviderRole), nullable=False, comment="MECHANIC, PARTS_SHOP or TOWING"
    )
    garage_type: Mapped[GarageType | None] = mapped_column(
        Enum(GarageType), nullable=True, comment="Mechanic specialisation"
    )
    wilaya_id: Mapped[int] = mapped_column(nullable=False, comment="Wilaya number (1-58)")
    commune: Mapped[str] = mapped_column(String(120), nullable=False, comment="Commune name")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", comment="Public description")
    phone: Mapped[str] = mapped_column(String(20), nullable=False, comment="Contact phone")
    specialty: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list, comment="Specialties")
    image: Mapped[str | None] = mapped_column(String, nullable=True, comment="Profile image URL")

    # Availability
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, comment="Manual on/off toggle")
    working_days: Mapped[list[int]] = mapped_column(
        JSON, nullable=False, default=lambda: [0, 1, 2, 3, 4, 6], comment="Days of week (0=Sunday)"
    )
    working_hours_start: Mapped[str] = mapped_column(String(5), default="08:00", comment="Opening time")
    working_hours_end: Mapped[str] = mapped_column(String(5), default="17:00", comment="Closing time")

    # Derived aggregate (see ReviewService.recompute_provider_rating)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, comment="Average rating")
    total_reviews: Mapped[int] = mapped_column(nullable=False, default=0, comment="Number of reviews")

    # Moderation
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, comment="Admin-approved for public listings"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        comment="Timestamp when the profile was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        comment="Timestamp when the profile was last updated",
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="provider_profile")
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="provider")
    reviews: Mapped[list["Review"]] = relationship("Review", back_populates="provider")

    def __repr__(self) -> str:
        return f"<ServiceProvider id={self.id} role={self.role} verified={self.is_verified}>"
