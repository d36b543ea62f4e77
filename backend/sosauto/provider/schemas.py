"""
backend/sosauto/provider/schemas.py

Provider Schemas
- ProviderRead: Public provider profile
- ProviderUpdate: Fields the owning professional may change
- ProviderStats: Public platform figures for the home page
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import Field, StringConstraints

from sosauto.core.schemas import CamelModel
from sosauto.database.enums import GarageType, ProviderRole

HourText = Annotated[str, StringConstraints(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]
DayOfWeek = Annotated[int, Field(ge=0, le=6)]


class WorkingHours(CamelModel):
    start: HourText = Field(..., description="Opening time, HH:MM")
    end: HourText = Field(..., description="Closing time, HH:MM")


# ---------------------------------------------------
# Read Schema (Public)
# ---------------------------------------------------
class ProviderRead(CamelModel):
    id: UUID
    user_id: UUID
    name: str
    role: ProviderRole
    garage_type: GarageType | None = None
    wilaya_id: int
    commune: str
    description: str = ""
    phone: str
    specialty: list[str] = Field(default_factory=list)
    image: str | None = None
    is_available: bool
    working_days: list[int] = Field(default_factory=list, description="0=Sunday .. 6=Saturday")
    working_hours: WorkingHours
    rating: float = Field(..., description="Average rating, one decimal")
    total_reviews: int
    is_verified: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------
# Update Schema (Owning professional)
# ---------------------------------------------------
class ProviderUpdate(CamelModel):
    """Rating, review count and verification are not writable here."""

    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=150)] | None = None
    description: Annotated[str, StringConstraints(strip_whitespace=True, max_length=2000)] | None = None
    phone: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)] | None = None
    specialty: list[str] | None = None
    image: str | None = None
    is_available: bool | None = None
    working_days: list[DayOfWeek] | None = None
    working_hours: WorkingHours | None = None


class ProviderStats(CamelModel):
    total_providers: int = Field(..., description="Verified providers")
    wilayas_covered: int = Field(..., description="Distinct wilayas with a verified provider")
    avg_rating: float = Field(..., description="Average rating of reviewed verified providers")
