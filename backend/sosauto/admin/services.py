"""
admin/services.py

Admin Service Layer
- Dashboard counters
- Provider verification queue and approval
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.admin import schemas
from sosauto.core import policy
from sosauto.database.models import User
from sosauto.provider.models import ServiceProvider
from sosauto.provider.schemas import ProviderRead
from sosauto.provider.services import build_provider_read

logger = logging.getLogger(__name__)

PENDING_PROVIDERS_LIMIT = 50


class AdminService:
    """Service layer for admin-only operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_stats(self) -> schemas.AdminStats:
        total_users = (await self.db.execute(select(func.count(User.id)))).scalar_one()
        verified = (
            await self.db.execute(
                select(func.count(ServiceProvider.id)).filter(ServiceProvider.is_verified.is_(True))
            )
        ).scalar_one()
        pending = (
            await self.db.execute(
                select(func.count(ServiceProvider.id)).filter(ServiceProvider.is_verified.is_(False))
            )
        ).scalar_one()
        return schemas.AdminStats(
            total_users=total_users, total_providers=verified, pending_providers=pending
        )

    async def list_pending_providers(self) -> list[ProviderRead]:
        result = await self.db.execute(
            select(ServiceProvider)
            .filter(ServiceProvider.is_verified.is_(False))
            .order_by(ServiceProvider.created_at.desc())
            .limit(PENDING_PROVIDERS_LIMIT)
        )
        return [build_provider_read(p) for p in result.scalars().all()]

    async def approve_provider(self, admin: User, provider_id: UUID) -> ProviderRead:
        """Marks a provider as verified so it shows up in public listings."""
        if not policy.can_verify_provider(admin):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

        provider = await self.db.get(ServiceProvider, provider_id)
        if not provider:
            logger.warning(f"[ADMIN] Provider not found for approval: {provider_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")

        provider.is_verified = True
        await self.db.commit()
        await self.db.refresh(provider)
        logger.info(f"[ADMIN] Provider {provider_id} approved by admin {admin.id}")
        return build_provider_read(provider)
