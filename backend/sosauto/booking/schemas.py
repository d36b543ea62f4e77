"""
backend/sosauto/booking/schemas.py

Booking Schemas
Pydantic schemas for booking operations:
- Booking creation (Authenticated Client)
- Status / price / cancellation updates (Client or Provider owner)
- Reading booking details (Authenticated users)

All payloads use camelCase on the wire (providerId, cancellationReason, ...).
"""

from datetime import date as date_type
from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import Field, StringConstraints, field_validator

from sosauto.booking.models import CANCELLATION_REASON_MAX_LENGTH, ISSUE_MAX_LENGTH
from sosauto.core.schemas import CamelModel
from sosauto.database.enums import BookingStatus

IssueText = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=ISSUE_MAX_LENGTH)
]
CancellationReason = Annotated[
    str, StringConstraints(strip_whitespace=True, max_length=CANCELLATION_REASON_MAX_LENGTH)
]


# ---------------------------------------------------
# Booking Creation Schema (Authenticated Client)
# ---------------------------------------------------
class BookingCreate(CamelModel):
    """Schema used when a client requests a booking."""

    provider_id: UUID = Field(..., description="Provider to book")
    date: datetime = Field(..., description="Requested service date (today or later)")
    issue: IssueText = Field(..., description="Description of the vehicle problem")

    @field_validator("date")
    @classmethod
    def date_not_in_past(cls, value: datetime) -> datetime:
        # Calendar-day comparison, time of day is ignored
        if value.date() < date_type.today():
            raise ValueError("Booking date cannot be in the past")
        return value


# ---------------------------------------------------
# Booking Update Schema (Client or Provider owner)
# ---------------------------------------------------
class BookingUpdate(CamelModel):
    """Partial update; fields left out of the payload are not touched."""

    status: BookingStatus | None = Field(None, description="New booking status")
    price: float | None = Field(None, ge=0, description="Agreed price (DZD)")
    cancellation_reason: CancellationReason | None = Field(
        None, description="Only stored when status is CANCELLED in the same update"
    )


# ---------------------------------------------------
# Read Booking Schema (Authenticated Output)
# ---------------------------------------------------
class BookingRead(CamelModel):
    """Schema returned when reading booking details."""

    id: UUID = Field(..., description="Booking unique identifier")
    provider_id: UUID = Field(..., description="Booked provider")
    provider_name: str = Field(..., description="Provider name at booking time")
    provider_phone: str = Field(..., description="Provider phone at booking time")
    client_id: UUID = Field(..., description="Requesting client")
    client_name: str = Field(..., description="Client name at booking time")
    client_phone: str = Field(..., description="Client phone at booking time")
    date: datetime = Field(..., description="Requested service date")
    issue: str = Field(..., description="Description of the vehicle problem")
    status: BookingStatus = Field(..., description="Current status")
    price: float | None = Field(None, description="Agreed price (DZD)")
    cancellation_reason: str | None = Field(None, description="Reason given on cancellation")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
