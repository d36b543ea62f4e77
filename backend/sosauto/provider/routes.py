"""
backend/sosauto/provider/routes.py

Provider Routes
- List verified providers with filters (Public)
- Platform statistics (Public)
- Provider details (Public)
- Provider profile of a user (Authenticated)
- Update own provider profile (Authenticated Professional)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.core.dependencies import get_current_user, require_roles
from sosauto.core.limiter import limiter
from sosauto.database.enums import GarageType, ProviderRole, UserRole
from sosauto.database.models import User
from sosauto.database.session import get_db
from sosauto.provider import schemas
from sosauto.provider.services import ProviderService

router = APIRouter(prefix="/providers", tags=["Providers"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]
ProfessionalDep = Annotated[
    User, Depends(require_roles(UserRole.MECHANIC, UserRole.PARTS_SHOP, UserRole.TOWING))
]


@router.get(
    "",
    response_model=list[schemas.ProviderRead],
    status_code=status.HTTP_200_OK,
    summary="List Providers",
    description="Verified providers matching the filters, best rated first.",
)
@limiter.limit("60/minute")
async def list_providers(
    request: Request,
    db: DBDep,
    role: ProviderRole | None = Query(None),
    wilaya_id: int | None = Query(None, alias="wilayaId", ge=1, le=58),
    commune: str | None = Query(None),
    garage_type: GarageType | None = Query(None, alias="garageType"),
    specialty: str | None = Query(None),
    is_available: bool | None = Query(None, alias="isAvailable"),
) -> list[schemas.ProviderRead]:
    return await ProviderService(db).list_providers(
        role=role,
        wilaya_id=wilaya_id,
        commune=commune,
        garage_type=garage_type,
        specialty=specialty,
        is_available=is_available,
    )


@router.get(
    "/stats",
    response_model=schemas.ProviderStats,
    status_code=status.HTTP_200_OK,
    summary="Provider Statistics",
)
@limiter.limit("60/minute")
async def provider_stats(request: Request, db: DBDep) -> schemas.ProviderStats:
    return await ProviderService(db).get_stats()


@router.get(
    "/user/{user_id}",
    response_model=schemas.ProviderRead,
    status_code=status.HTTP_200_OK,
    summary="Get Provider By User",
    description="Provider profile owned by the given user.",
)
@limiter.limit("30/minute")
async def get_provider_by_user(
    request: Request,
    user_id: UUID,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.ProviderRead:
    return await ProviderService(db).get_provider_by_user(user_id)


@router.get(
    "/{provider_id}",
    response_model=schemas.ProviderRead,
    status_code=status.HTTP_200_OK,
    summary="Get Provider",
)
@limiter.limit("60/minute")
async def get_provider(request: Request, provider_id: UUID, db: DBDep) -> schemas.ProviderRead:
    return await ProviderService(db).get_provider(provider_id)


@router.put(
    "/{provider_id}",
    response_model=schemas.ProviderRead,
    status_code=status.HTTP_200_OK,
    summary="Update Provider",
    description="The owning professional updates their public profile.",
)
@limiter.limit("10/minute")
async def update_provider(
    request: Request,
    provider_id: UUID,
    payload: schemas.ProviderUpdate,
    db: DBDep,
    current_user: ProfessionalDep,
) -> schemas.ProviderRead:
    return await ProviderService(db).update_provider(current_user, provider_id, payload)
