"""
backend/sosauto/auth/routes.py

Authentication Routes
- Get the current authenticated user

Registration and login are served by the account service; this API only
consumes the tokens it issues.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.auth.schemas import AuthUserRead
from sosauto.core.dependencies import get_current_user
from sosauto.core.limiter import limiter
from sosauto.database.enums import PROFESSIONAL_ROLES
from sosauto.database.models import User
from sosauto.database.session import get_db
from sosauto.provider.models import ServiceProvider

router = APIRouter(prefix="/auth", tags=["Authentication"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]


@router.get(
    "/me",
    response_model=AuthUserRead,
    status_code=status.HTTP_200_OK,
    summary="Current User",
    description="Returns the authenticated user, with the provider profile id for professionals.",
)
@limiter.limit("30/minute")
async def get_me(request: Request, db: DBDep, current_user: AuthenticatedUserDep) -> AuthUserRead:
    provider_id = None
    if current_user.role in PROFESSIONAL_ROLES:
        result = await db.execute(
            select(ServiceProvider.id).filter(ServiceProvider.user_id == current_user.id)
        )
        provider_id = result.scalar_one_or_none()

    return AuthUserRead(
        id=current_user.id,
        name=current_user.name,
        email=current_user.email,
        phone=current_user.phone,
        role=current_user.role,
        wilaya_id=current_user.wilaya_id,
        commune=current_user.commune,
        provider_id=provider_id,
    )
