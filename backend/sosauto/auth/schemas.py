"""
backend/sosauto/auth/schemas.py

Authentication Schemas
- AuthUserRead: The authenticated principal as returned by /auth/me
"""

from uuid import UUID

from pydantic import EmailStr, Field

from sosauto.core.schemas import CamelModel
from sosauto.database.enums import UserRole


class AuthUserRead(CamelModel):
    id: UUID = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: EmailStr = Field(..., description="Account email")
    phone: str | None = Field(None, description="Phone number")
    role: UserRole = Field(..., description="Account role")
    wilaya_id: int | None = Field(None, description="Home wilaya")
    commune: str | None = Field(None, description="Home commune")
    provider_id: UUID | None = Field(None, description="Owned provider profile, for professionals")
