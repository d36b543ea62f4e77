"""
backend/sosauto/database/models.py

Core SQLAlchemy ORM Models

Defines:
- User: Authenticated platform account with role-based access

Includes relationships with:
- ServiceProvider (profile owned by professional accounts)
- Booking (requests made as a client)
- Notification (messages delivered to the account)
- Review (reviews written as a client)

Importing this module registers every mapped class on the shared metadata.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sosauto.database.base import Base, utcnow
from sosauto.database.enums import UserRole
from sosauto.provider.models import ServiceProvider
from sosauto.booking.models import Booking
from sosauto.notification.models import Notification
from sosauto.review.models import Review

# ---------------------------------------------------
# User Model: Authenticated Platform User
# ---------------------------------------------------


class User(Base):
    __tablename__ = "users"

    # -------------------------------------
    # Fields
    # -------------------------------------
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the user",
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False, comment="Display name")
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, comment="User's email address"
    )
    phone: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="User's phone number"
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, comment="User role (CLIENT, MECHANIC, PARTS_SHOP, TOWING, ADMIN)"
    )
    wilaya_id: Mapped[int | None] = mapped_column(nullable=True, comment="Home wilaya number")
    commune: Mapped[str | None] = mapped_column(String(120), nullable=True, comment="Home commune")
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, comment="Whether the user account is active"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        comment="Timestamp when the user was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        comment="Timestamp when the user was last updated",
    )

    # -------------------------------------
    # Relationships
    # -------------------------------------

    # One-to-One: a professional account manages one provider profile
    provider_profile: Mapped[Optional["ServiceProvider"]] = relationship(
        "ServiceProvider", back_populates="owner", uselist=False
    )

    # One-to-Many: bookings requested as a client
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking", back_populates="client", foreign_keys="Booking.client_id"
    )

    # One-to-Many: notifications delivered to this account
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification", back_populates="recipient", cascade="all, delete-orphan"
    )

    # One-to-Many: reviews written as a client
    given_reviews: Mapped[list["Review"]] = relationship(
        "Review", back_populates="client", foreign_keys="Review.client_id"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role}>"
