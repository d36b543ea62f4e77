"""
backend/sosauto/database/enums.py

Enumerations

Defines enumerations used across the platform:
- UserRole: Roles assigned to user accounts
- ProviderRole: Kind of service a provider profile offers
- GarageType: Specialisation of a mechanic's garage
- BookingStatus: Lifecycle states of a booking
- NotificationType: Severity/category of a notification
"""

from enum import Enum

# ---------------------------------------------------
# User Role Enumeration
# ---------------------------------------------------


class UserRole(str, Enum):
    """
    Enum representing user roles for access control.

    Values:
    - CLIENT
    - MECHANIC
    - PARTS_SHOP
    - TOWING
    - ADMIN
    """

    CLIENT = "CLIENT"
    MECHANIC = "MECHANIC"
    PARTS_SHOP = "PARTS_SHOP"
    TOWING = "TOWING"
    ADMIN = "ADMIN"


# Roles whose accounts own a service provider profile
PROFESSIONAL_ROLES: frozenset[UserRole] = frozenset(
    {UserRole.MECHANIC, UserRole.PARTS_SHOP, UserRole.TOWING}
)


# ---------------------------------------------------
# Provider Enumerations
# ---------------------------------------------------


class ProviderRole(str, Enum):
    """Service category offered by a provider profile."""

    MECHANIC = "MECHANIC"
    PARTS_SHOP = "PARTS_SHOP"
    TOWING = "TOWING"


class GarageType(str, Enum):
    """Mechanic specialisation."""

    MECHANIC = "MECHANIC"
    ELECTRICIAN = "ELECTRICIAN"
    AUTO_BODY = "AUTO_BODY"


# ---------------------------------------------------
# Booking Status Enumeration
# ---------------------------------------------------


class BookingStatus(str, Enum):
    """
    Enum representing the lifecycle of a booking.

    Values:
    - PENDING (initial)
    - CONFIRMED
    - COMPLETED (terminal)
    - CANCELLED (terminal)
    """

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# ---------------------------------------------------
# Notification Type Enumeration
# ---------------------------------------------------


class NotificationType(str, Enum):
    """Category of a notification shown to its recipient."""

    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
