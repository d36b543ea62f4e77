"""
booking/models.py

Defines the Booking model.
- Represents a service request from a client to a provider
- provider_*/client_* name and phone columns are snapshots taken at creation
  and are never refreshed afterwards
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, Float, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sosauto.database.base import Base, utcnow
from sosauto.database.enums import BookingStatus

if TYPE_CHECKING:
    from sosauto.database.models import User
    from sosauto.provider.models import ServiceProvider


ISSUE_MAX_LENGTH = 2000
CANCELLATION_REASON_MAX_LENGTH = 500


class Booking(Base):
    __tablename__ = "bookings"

    # Identifiers & Foreign Keys
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the booking",
    )
    provider_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("service_providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Provider the booking was made with",
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Client who requested the booking",
    )

    # Snapshots captured at creation
    provider_name: Mapped[str] = mapped_column(String(150), nullable=False)
    provider_phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    client_name: Mapped[str] = mapped_column(String(150), nullable=False)
    client_phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")

    # Request details
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, comment="Requested service date"
    )
    issue: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Description of the vehicle problem"
    )

    # Mutable state
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus),
        default=BookingStatus.PENDING,
        nullable=False,
        comment="Current status of the booking",
    )
    price: Mapped[float | None] = mapped_column(Float, nullable=True, comment="Agreed price (DZD)")
    cancellation_reason: Mapped[str | None] = mapped_column(
        String(CANCELLATION_REASON_MAX_LENGTH),
        nullable=True,
        comment="Reason given when the booking was cancelled",
    )

    # Audit Fields
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True,
        comment="Timestamp when the booking was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        comment="Timestamp when the booking was last updated",
    )

    # Relationships
    client: Mapped["User"] = relationship("User", back_populates="bookings", foreign_keys=[client_id])
    provider: Mapped["ServiceProvider"] = relationship("ServiceProvider", back_populates="bookings")

    def __repr__(self) -> str:
        return f"<Booking id={self.id} status={self.status}>"
