"""
backend/sosauto/booking/routes.py

Booking Routes
Defines booking-related API endpoints:
- Request a booking (Authenticated user)
- List bookings visible to the current user
- Retrieve booking details (Client, Provider owner or Admin)
- Update status/price/cancellation (Client or Provider owner)
- Delete a booking (Client)

All endpoints require authentication.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.booking import schemas
from sosauto.booking.services import BookingService
from sosauto.core.dependencies import get_current_user, get_dispatcher
from sosauto.core.limiter import limiter
from sosauto.core.schemas import MessageResponse
from sosauto.database.models import User
from sosauto.database.session import get_db
from sosauto.notification.dispatcher import NotificationDispatcher

router = APIRouter(prefix="/bookings", tags=["Bookings"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]


@router.post(
    "",
    response_model=schemas.BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Booking",
    description="Request a booking with a provider. The provider's owner is notified.",
)
@limiter.limit("10/minute")
async def create_booking(
    request: Request,
    payload: schemas.BookingCreate,
    db: DBDep,
    dispatcher: DispatcherDep,
    current_user: AuthenticatedUserDep,
) -> schemas.BookingRead:
    """Authenticated user books a provider."""
    return await BookingService(db, dispatcher).create_booking(current_user, payload)


@router.get(
    "",
    response_model=list[schemas.BookingRead],
    status_code=status.HTTP_200_OK,
    summary="List Bookings",
    description="Clients get their bookings, professionals their provider's bookings, admins all bookings.",
)
@limiter.limit("30/minute")
async def list_bookings(
    request: Request,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> list[schemas.BookingRead]:
    return await BookingService(db).list_bookings(current_user)


@router.get(
    "/{booking_id}",
    response_model=schemas.BookingRead,
    status_code=status.HTTP_200_OK,
    summary="Get Booking",
    description="Retrieve one booking. Visible to its client, the provider's owner and admins.",
)
@limiter.limit("30/minute")
async def get_booking(
    request: Request,
    booking_id: UUID,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.BookingRead:
    return await BookingService(db).get_booking(current_user, booking_id)


@router.put(
    "/{booking_id}",
    response_model=schemas.BookingRead,
    status_code=status.HTTP_200_OK,
    summary="Update Booking",
    description="Change status, price or cancellation reason. Only the two parties may update.",
)
@limiter.limit("20/minute")
async def update_booking(
    request: Request,
    booking_id: UUID,
    payload: schemas.BookingUpdate,
    db: DBDep,
    dispatcher: DispatcherDep,
    current_user: AuthenticatedUserDep,
) -> schemas.BookingRead:
    """Client or provider owner updates a booking; a status change notifies the other party."""
    return await BookingService(db, dispatcher).update_booking(current_user, booking_id, payload)


@router.delete(
    "/{booking_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete Booking",
    description="The booking's client removes it permanently.",
)
@limiter.limit("10/minute")
async def delete_booking(
    request: Request,
    booking_id: UUID,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> MessageResponse:
    return await BookingService(db).delete_booking(current_user, booking_id)
