"""
backend/sosauto/booking/services.py

Booking Service Layer
Handles booking creation, updates, deletion and retrieval.

Every status event stores a Notification in the same transaction as the
booking change. After the commit the dispatcher delivers it over the live
socket and by email without the request waiting on either channel.
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.booking import lifecycle, models, schemas
from sosauto.core import policy
from sosauto.core.config import settings
from sosauto.core.email import (
    OutgoingEmail,
    render_booking_status_email,
    render_new_booking_email,
)
from sosauto.core.schemas import MessageResponse
from sosauto.database.enums import BookingStatus
from sosauto.database.models import User
from sosauto.notification.dispatcher import NotificationDispatcher
from sosauto.notification.models import Notification
from sosauto.provider.models import ServiceProvider

logger = logging.getLogger(__name__)


class BookingService:
    """Service class for booking business logic."""

    def __init__(self, db: AsyncSession, dispatcher: NotificationDispatcher | None = None) -> None:
        self.db = db
        self.dispatcher = dispatcher

    # ---------------------------------------------------
    # Helpers
    # ---------------------------------------------------
    async def _get_booking_or_404(self, booking_id: UUID) -> models.Booking:
        booking = await self.db.get(models.Booking, booking_id)
        if not booking:
            logger.warning(f"[BOOKING] Booking not found: booking_id={booking_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
        return booking

    async def _get_provider_owner_id(self, provider_id: UUID) -> UUID | None:
        result = await self.db.execute(
            select(ServiceProvider.user_id).filter(ServiceProvider.id == provider_id)
        )
        return result.scalar_one_or_none()

    async def _resolve_recipient(self, user_id: UUID) -> User | None:
        """Looks up the email recipient; any failure just means no email."""
        try:
            user = await self.db.get(User, user_id)
        except Exception as e:
            logger.error(f"[EMAIL] Could not resolve recipient {user_id}: {e}")
            return None
        if not user or not user.email:
            logger.info(f"[EMAIL] No email address for user {user_id}, skipping email")
            return None
        return user

    def _notification_for(self, event: lifecycle.BookingEvent) -> Notification:
        notification = Notification(
            user_id=event.recipient_id,
            title=event.title,
            message=event.message,
            type=event.type,
        )
        self.db.add(notification)
        return notification

    async def _commit(self, failure_detail: str) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"[BOOKING] Commit failed: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail
            )

    def _fan_out(self, notification: Notification, email: OutgoingEmail | None) -> None:
        if self.dispatcher is None:
            logger.warning(f"[FANOUT] No dispatcher configured, notification {notification.id} stored only")
            return
        self.dispatcher.fan_out(notification, email)

    # ---------------------------------------------------
    # Create Booking (Client)
    # ---------------------------------------------------
    async def create_booking(self, client: User, data: schemas.BookingCreate) -> schemas.BookingRead:
        """
        Creates a PENDING booking with name/phone snapshots of both parties
        and notifies the provider's owner.
        """
        logger.info(f"[BOOKING] Client {client.id} requesting booking with provider {data.provider_id}")

        provider = await self.db.get(ServiceProvider, data.provider_id)
        if not provider:
            logger.warning(f"[BOOKING] Provider not found: provider_id={data.provider_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")

        booking = models.Booking(
            provider_id=provider.id,
            provider_name=provider.name,
            provider_phone=provider.phone or "",
            client_id=client.id,
            client_name=client.name,
            client_phone=client.phone or "",
            date=data.date,
            issue=data.issue,
            status=lifecycle.INITIAL_STATUS,
        )
        self.db.add(booking)

        event = lifecycle.booking_created_event(provider.user_id, client.name, data.date)
        notification = self._notification_for(event)

        await self._commit("Failed to create booking.")
        logger.info(f"[BOOKING] Booking {booking.id} created, notification {notification.id} stored")

        email = await self._new_booking_email(event.recipient_id, booking)
        self._fan_out(notification, email)
        return schemas.BookingRead.model_validate(booking)

    async def _new_booking_email(self, recipient_id: UUID, booking: models.Booking) -> OutgoingEmail | None:
        recipient = await self._resolve_recipient(recipient_id)
        if recipient is None:
            return None
        try:
            return render_new_booking_email(
                to_email=recipient.email,
                provider_name=booking.provider_name,
                client_name=booking.client_name,
                client_phone=booking.client_phone,
                booking_date=booking.date,
                issue=booking.issue,
            )
        except Exception as e:
            logger.error(f"[EMAIL] Failed to render new booking email for {booking.id}: {e}")
            return None

    # ---------------------------------------------------
    # Update Booking (Client or Provider owner)
    # ---------------------------------------------------
    async def update_booking(
        self, user: User, booking_id: UUID, data: schemas.BookingUpdate
    ) -> schemas.BookingRead:
        """
        Applies status/price/cancellation changes. Only a payload carrying a
        status produces a notification, addressed to the other party.
        """
        booking = await self._get_booking_or_404(booking_id)
        provider_user_id = await self._get_provider_owner_id(booking.provider_id)

        if not policy.can_update_booking(user, booking, provider_user_id):
            logger.warning(f"[BOOKING] User {user.id} not allowed to update booking {booking_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to update this booking",
            )

        updates = data.model_dump(exclude_unset=True)
        new_status: BookingStatus | None = updates.get("status")

        if (
            new_status is not None
            and settings.BOOKING_STRICT_TRANSITIONS
            and not lifecycle.can_transition(booking.status, new_status)
        ):
            logger.warning(
                f"[BOOKING] Rejected transition {booking.status.value} -> {new_status.value} on {booking_id}"
            )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change booking status from {booking.status.value} to {new_status.value}",
            )

        if new_status is not None and new_status != booking.status and lifecycle.is_terminal(booking.status):
            logger.info(f"[BOOKING] Booking {booking_id} leaves terminal status {booking.status.value}")

        if "price" in updates:
            booking.price = updates["price"]

        notification: Notification | None = None
        event: lifecycle.BookingEvent | None = None
        if new_status is not None:
            previous = booking.status
            booking.status = new_status
            reason = updates.get("cancellation_reason")
            if new_status == BookingStatus.CANCELLED:
                if "cancellation_reason" in updates:
                    booking.cancellation_reason = reason
            else:
                # A reason only describes the current cancellation
                booking.cancellation_reason = None

            recipient_id = policy.booking_counterparty(user, booking, provider_user_id)  # type: ignore[arg-type]
            event = lifecycle.status_changed_event(
                recipient_id,
                new_status,
                reason if new_status == BookingStatus.CANCELLED else None,
            )
            notification = self._notification_for(event)
            logger.info(
                f"[BOOKING] Booking {booking_id} status {previous.value} -> {new_status.value} by {user.id}"
            )

        await self._commit("Failed to update booking.")
        await self.db.refresh(booking)

        if notification is not None and event is not None:
            email = (
                await self._status_email(event.recipient_id, booking)
                if event.send_email
                else None
            )
            self._fan_out(notification, email)

        return schemas.BookingRead.model_validate(booking)

    async def _status_email(self, recipient_id: UUID, booking: models.Booking) -> OutgoingEmail | None:
        recipient = await self._resolve_recipient(recipient_id)
        if recipient is None:
            return None
        if recipient_id == booking.client_id:
            recipient_name, counterpart_name = booking.client_name, booking.provider_name
        else:
            recipient_name, counterpart_name = booking.provider_name, booking.client_name
        try:
            return render_booking_status_email(
                to_email=recipient.email,
                recipient_name=recipient_name,
                counterpart_name=counterpart_name,
                status=booking.status,
                booking_date=booking.date,
                cancellation_reason=booking.cancellation_reason
                if booking.status == BookingStatus.CANCELLED
                else None,
            )
        except Exception as e:
            logger.error(f"[EMAIL] Failed to render status email for {booking.id}: {e}")
            return None

    # ---------------------------------------------------
    # Delete Booking (Client)
    # ---------------------------------------------------
    async def delete_booking(self, user: User, booking_id: UUID) -> MessageResponse:
        """Hard delete by the booking's client, whatever the status."""
        booking = await self._get_booking_or_404(booking_id)
        if not policy.can_delete_booking(user, booking):
            logger.warning(f"[BOOKING] User {user.id} not allowed to delete booking {booking_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to delete this booking",
            )

        await self.db.delete(booking)
        await self._commit("Failed to delete booking.")
        logger.info(f"[BOOKING] Booking {booking_id} deleted by client {user.id}")
        return MessageResponse(detail="Booking removed")

    # ---------------------------------------------------
    # Retrieval
    # ---------------------------------------------------
    async def get_booking(self, user: User, booking_id: UUID) -> schemas.BookingRead:
        booking = await self._get_booking_or_404(booking_id)
        provider_user_id = await self._get_provider_owner_id(booking.provider_id)
        if not policy.can_view_booking(user, booking, provider_user_id):
            logger.warning(f"[BOOKING] User {user.id} not allowed to view booking {booking_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to view this booking",
            )
        return schemas.BookingRead.model_validate(booking)

    async def list_bookings(self, user: User) -> list[schemas.BookingRead]:
        """
        Clients see their own bookings, professionals the bookings of their
        provider profile, admins everything. Newest first.
        """
        scope = policy.booking_list_scope(user)
        stmt = select(models.Booking).order_by(models.Booking.created_at.desc())

        if scope == policy.BookingScope.CLIENT:
            stmt = stmt.filter(models.Booking.client_id == user.id)
        elif scope == policy.BookingScope.PROVIDER:
            result = await self.db.execute(
                select(ServiceProvider.id).filter(ServiceProvider.user_id == user.id)
            )
            provider_id = result.scalar_one_or_none()
            if provider_id is None:
                logger.info(f"[BOOKING] User {user.id} has no provider profile yet")
                return []
            stmt = stmt.filter(models.Booking.provider_id == provider_id)

        result = await self.db.execute(stmt)
        bookings = result.scalars().all()
        logger.debug(f"[BOOKING] Listed {len(bookings)} bookings for user {user.id} (scope={scope.value})")
        return [schemas.BookingRead.model_validate(b) for b in bookings]
