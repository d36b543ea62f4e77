"""
backend/sosauto/notification/services.py

Notification Services
Read, mark and clear notifications. Only the recipient may touch one.
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.core import policy
from sosauto.core.schemas import MessageResponse
from sosauto.database.models import User
from sosauto.notification import models, schemas

logger = logging.getLogger(__name__)

NOTIFICATIONS_LIMIT = 50


class NotificationService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_owned_or_raise(self, user: User, notification_id: UUID) -> models.Notification:
        notification = await self.db.get(models.Notification, notification_id)
        if not notification:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
        if not policy.can_manage_notification(user, notification.user_id):
            logger.warning(f"[NOTIFICATION] User {user.id} tried to access notification {notification_id}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
        return notification

    async def list_for_user(self, user: User) -> list[schemas.NotificationRead]:
        result = await self.db.execute(
            select(models.Notification)
            .filter(models.Notification.user_id == user.id)
            .order_by(models.Notification.created_at.desc())
            .limit(NOTIFICATIONS_LIMIT)
        )
        return [schemas.NotificationRead.model_validate(n) for n in result.scalars().all()]

    async def mark_as_read(self, user: User, notification_id: UUID) -> schemas.NotificationRead:
        notification = await self._get_owned_or_raise(user, notification_id)
        notification.is_read = True
        await self.db.commit()
        logger.info(f"[NOTIFICATION] Notification {notification_id} marked as read")
        return schemas.NotificationRead.model_validate(notification)

    async def delete(self, user: User, notification_id: UUID) -> MessageResponse:
        notification = await self._get_owned_or_raise(user, notification_id)
        await self.db.delete(notification)
        await self.db.commit()
        logger.info(f"[NOTIFICATION] Notification {notification_id} removed by {user.id}")
        return MessageResponse(detail="Notification removed")

    async def clear_all(self, user: User) -> MessageResponse:
        result = await self.db.execute(
            delete(models.Notification).where(models.Notification.user_id == user.id)
        )
        await self.db.commit()
        logger.info(f"[NOTIFICATION] Cleared {result.rowcount} notifications for {user.id}")
        return MessageResponse(detail="All notifications cleared")
