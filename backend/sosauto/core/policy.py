"""
core/policy.py

Authorization rules for bookings, notifications and provider profiles.

Every check is a pure function of the principal and the resource so the
services can ask before touching state and the rules can be tested alone.
A provider's owning user id is passed explicitly because a booking only
references the provider profile, not the account managing it.
"""

from enum import Enum
from typing import Protocol
from uuid import UUID

from sosauto.database.enums import PROFESSIONAL_ROLES, UserRole


class Principal(Protocol):
    id: UUID
    role: UserRole


class BookingParties(Protocol):
    client_id: UUID
    provider_id: UUID


class BookingScope(str, Enum):
    """Which bookings a principal may list."""

    CLIENT = "CLIENT"
    PROVIDER = "PROVIDER"
    ALL = "ALL"


# ---------------------------------------------------
# Bookings
# ---------------------------------------------------
def is_booking_client(user: Principal, booking: BookingParties) -> bool:
    return booking.client_id == user.id


def is_provider_owner(user: Principal, provider_user_id: UUID | None) -> bool:
    return provider_user_id is not None and provider_user_id == user.id


def can_view_booking(
    user: Principal, booking: BookingParties, provider_user_id: UUID | None
) -> bool:
    """Client, provider owner or any admin."""
    return (
        is_booking_client(user, booking)
        or is_provider_owner(user, provider_user_id)
        or user.role == UserRole.ADMIN
    )


def can_update_booking(
    user: Principal, booking: BookingParties, provider_user_id: UUID | None
) -> bool:
    """Only the two parties; admins get read access but no write access."""
    return is_booking_client(user, booking) or is_provider_owner(user, provider_user_id)


def can_delete_booking(user: Principal, booking: BookingParties) -> bool:
    return is_booking_client(user, booking)


def can_review_booking(user: Principal, booking: BookingParties) -> bool:
    return is_booking_client(user, booking)


def booking_counterparty(
    user: Principal, booking: BookingParties, provider_user_id: UUID
) -> UUID:
    """
    Returns the user id that should hear about a change made by `user`:
    the client when the provider's owner acted, otherwise the provider's owner.
    """
    if is_provider_owner(user, provider_user_id):
        return booking.client_id
    return provider_user_id


def booking_list_scope(user: Principal) -> BookingScope:
    if user.role == UserRole.CLIENT:
        return BookingScope.CLIENT
    if user.role in PROFESSIONAL_ROLES:
        return BookingScope.PROVIDER
    return BookingScope.ALL


# ---------------------------------------------------
# Notifications
# ---------------------------------------------------
def can_manage_notification(user: Principal, recipient_id: UUID) -> bool:
    """Only the recipient may read, mark or delete a notification."""
    return recipient_id == user.id


# ---------------------------------------------------
# Provider profiles
# ---------------------------------------------------
def can_manage_provider(user: Principal, provider_user_id: UUID) -> bool:
    return user.role in PROFESSIONAL_ROLES and provider_user_id == user.id


def can_verify_provider(user: Principal) -> bool:
    return user.role == UserRole.ADMIN
