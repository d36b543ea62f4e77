"""
booking/lifecycle.py

Booking state machine and the notifications each event produces.

    PENDING   -> CONFIRMED | CANCELLED
    CONFIRMED -> COMPLETED | CANCELLED
    COMPLETED, CANCELLED are terminal

Updates are permissive by default: any status may overwrite any other.
Setting BOOKING_STRICT_TRANSITIONS enforces the graph above.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from sosauto.database.enums import BookingStatus, NotificationType

INITIAL_STATUS = BookingStatus.PENDING

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

NEW_BOOKING_TITLE = "New Booking Request"
BOOKING_UPDATED_TITLE = "Booking Updated"


def is_terminal(status: BookingStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def can_transition(current: BookingStatus, new: BookingStatus) -> bool:
    """Re-asserting the current status is always accepted."""
    return new == current or new in ALLOWED_TRANSITIONS[current]


class BookingEvent(BaseModel):
    """Notification to persist and deliver for one booking event."""

    recipient_id: UUID
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    send_email: bool = True


def booking_created_event(provider_user_id: UUID, client_name: str, date: datetime) -> BookingEvent:
    return BookingEvent(
        recipient_id=provider_user_id,
        title=NEW_BOOKING_TITLE,
        message=f"{client_name} has requested a booking for {date.strftime('%d/%m/%Y')}",
    )


def status_changed_event(
    recipient_id: UUID,
    status: BookingStatus,
    cancellation_reason: str | None = None,
) -> BookingEvent:
    """
    Event for an update carrying a status. Moving (back) to PENDING
    notifies in-app only; every other status is also emailed.
    """
    message = f"Booking status changed to {status.value}"
    if status == BookingStatus.CANCELLED and cancellation_reason:
        message += f": {cancellation_reason}"
    return BookingEvent(
        recipient_id=recipient_id,
        title=BOOKING_UPDATED_TITLE,
        message=message,
        send_email=status != BookingStatus.PENDING,
    )
