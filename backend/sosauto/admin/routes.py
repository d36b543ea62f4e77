"""
backend/sosauto/admin/routes.py

Admin API Routes

Defines routes for administrative operations including:
- Platform statistics
- Listing providers awaiting verification
- Approving (verifying) a provider

All endpoints require Admin authentication.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.admin.schemas import AdminStats
from sosauto.admin.services import AdminService
from sosauto.core.dependencies import require_roles
from sosauto.core.limiter import limiter
from sosauto.database.enums import UserRole
from sosauto.database.models import User
from sosauto.database.session import get_db
from sosauto.provider.schemas import ProviderRead

# ---------------------------------------------------
# Router Configuration
# ---------------------------------------------------
router = APIRouter(prefix="/admin", tags=["Admin"])

# ---------------------------------------------------
# Dependencies
# ---------------------------------------------------
DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedAdminDep = Annotated[User, Depends(require_roles(UserRole.ADMIN))]


@router.get(
    "/stats",
    response_model=AdminStats,
    status_code=status.HTTP_200_OK,
    summary="Platform Statistics",
)
@limiter.limit("30/minute")
async def get_stats(request: Request, db: DBDep, admin: AuthenticatedAdminDep) -> AdminStats:
    return await AdminService(db).get_stats()


@router.get(
    "/providers/pending",
    response_model=list[ProviderRead],
    status_code=status.HTTP_200_OK,
    summary="Pending Providers",
    description="Unverified providers, newest first (max 50).",
)
@limiter.limit("30/minute")
async def list_pending_providers(
    request: Request, db: DBDep, admin: AuthenticatedAdminDep
) -> list[ProviderRead]:
    return await AdminService(db).list_pending_providers()


@router.put(
    "/providers/{provider_id}/approve",
    response_model=ProviderRead,
    status_code=status.HTTP_200_OK,
    summary="Approve Provider",
)
@limiter.limit("20/minute")
async def approve_provider(
    request: Request,
    provider_id: UUID,
    db: DBDep,
    admin: AuthenticatedAdminDep,
) -> ProviderRead:
    return await AdminService(db).approve_provider(admin, provider_id)
