"""
admin/schemas.py

Defines response schemas for admin operations:
- Platform-wide counters for the admin dashboard
"""

from pydantic import Field

from sosauto.core.schemas import CamelModel


# -----------------------------------------------------
# Schema for Admin Dashboard Statistics
# -----------------------------------------------------
class AdminStats(CamelModel):
    """
    Counters shown on the admin dashboard.
    """

    total_users: int = Field(..., description="Registered accounts")
    total_providers: int = Field(..., description="Verified providers")
    pending_providers: int = Field(..., description="Providers awaiting verification")
