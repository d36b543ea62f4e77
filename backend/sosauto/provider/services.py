"""
backend/sosauto/provider/services.py

Provider Service Layer
Directory operations over service provider profiles:
- Public listing of verified providers with filters, best rated first
- Public platform statistics
- Profile lookup by id or by owning user
- Profile update by its owning professional
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.core import policy
from sosauto.database.enums import GarageType, ProviderRole
from sosauto.database.models import User
from sosauto.provider import models, schemas
from sosauto.review.services import round_rating

logger = logging.getLogger(__name__)


def build_provider_read(provider: models.ServiceProvider) -> schemas.ProviderRead:
    """Helper to construct ProviderRead from a ServiceProvider instance."""
    return schemas.ProviderRead(
        id=provider.id,
        user_id=provider.user_id,
        name=provider.name,
        role=provider.role,
        garage_type=provider.garage_type,
        wilaya_id=provider.wilaya_id,
        commune=provider.commune,
        description=provider.description or "",
        phone=provider.phone,
        specialty=list(provider.specialty or []),
        image=provider.image,
        is_available=provider.is_available,
        working_days=list(provider.working_days or []),
        working_hours=schemas.WorkingHours(
            start=provider.working_hours_start, end=provider.working_hours_end
        ),
        rating=provider.rating,
        total_reviews=provider.total_reviews,
        is_verified=provider.is_verified,
        created_at=provider.created_at,
        updated_at=provider.updated_at,
    )


class ProviderService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_provider_or_404(self, provider_id: UUID) -> models.ServiceProvider:
        provider = await self.db.get(models.ServiceProvider, provider_id)
        if not provider:
            logger.warning(f"[PROVIDER] Provider not found: provider_id={provider_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
        return provider

    # ---------------------------------------------------
    # Public Directory
    # ---------------------------------------------------
    async def list_providers(
        self,
        role: ProviderRole | None = None,
        wilaya_id: int | None = None,
        commune: str | None = None,
        garage_type: GarageType | None = None,
        specialty: str | None = None,
        is_available: bool | None = None,
    ) -> list[schemas.ProviderRead]:
        """Verified providers matching every given filter, highest rating first."""
        stmt = select(models.ServiceProvider).filter(models.ServiceProvider.is_verified.is_(True))
        if role is not None:
            stmt = stmt.filter(models.ServiceProvider.role == role)
        if wilaya_id is not None:
            stmt = stmt.filter(models.ServiceProvider.wilaya_id == wilaya_id)
        if commune:
            stmt = stmt.filter(models.ServiceProvider.commune == commune)
        if garage_type is not None:
            stmt = stmt.filter(models.ServiceProvider.garage_type == garage_type)
        if is_available is not None:
            stmt = stmt.filter(models.ServiceProvider.is_available.is_(is_available))
        stmt = stmt.order_by(models.ServiceProvider.rating.desc())

        result = await self.db.execute(stmt)
        providers = list(result.scalars().all())

        # JSON list membership is dialect specific, so specialty is matched here
        if specialty:
            providers = [p for p in providers if specialty in (p.specialty or [])]

        logger.debug(f"[PROVIDER] Listed {len(providers)} verified providers")
        return [build_provider_read(p) for p in providers]

    async def get_stats(self) -> schemas.ProviderStats:
        verified = models.ServiceProvider.is_verified.is_(True)

        total = (await self.db.execute(select(func.count()).filter(verified))).scalar_one()
        wilayas = (
            await self.db.execute(
                select(func.count(distinct(models.ServiceProvider.wilaya_id))).filter(verified)
            )
        ).scalar_one()
        avg_rating = (
            await self.db.execute(
                select(func.avg(models.ServiceProvider.rating)).filter(
                    verified, models.ServiceProvider.total_reviews > 0
                )
            )
        ).scalar_one()

        return schemas.ProviderStats(
            total_providers=int(total),
            wilayas_covered=int(wilayas),
            avg_rating=round_rating(avg_rating),
        )

    async def get_provider(self, provider_id: UUID) -> schemas.ProviderRead:
        return build_provider_read(await self._get_provider_or_404(provider_id))

    async def get_provider_by_user(self, user_id: UUID) -> schemas.ProviderRead:
        result = await self.db.execute(
            select(models.ServiceProvider).filter(models.ServiceProvider.user_id == user_id)
        )
        provider = result.scalar_one_or_none()
        if not provider:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Provider profile not found"
            )
        return build_provider_read(provider)

    # ---------------------------------------------------
    # Owner Updates
    # ---------------------------------------------------
    async def update_provider(
        self, user: User, provider_id: UUID, data: schemas.ProviderUpdate
    ) -> schemas.ProviderRead:
        provider = await self._get_provider_or_404(provider_id)
        if not policy.can_manage_provider(user, provider.user_id):
            logger.warning(f"[PROVIDER] User {user.id} not allowed to update provider {provider_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to update this provider",
            )

        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        working_hours = updates.pop("working_hours", None)
        for field, value in updates.items():
            setattr(provider, field, value)
        if working_hours:
            provider.working_hours_start = working_hours["start"]
            provider.working_hours_end = working_hours["end"]

        await self.db.commit()
        await self.db.refresh(provider)
        logger.info(f"[PROVIDER] Provider {provider_id} updated fields: {sorted(data.model_fields_set)}")
        return build_provider_read(provider)
