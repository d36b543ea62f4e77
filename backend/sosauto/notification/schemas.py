"""
backend/sosauto/notification/schemas.py

Notification Schemas
- NotificationRead: Notification as returned by the API and pushed over WebSocket
- NotificationFrame: Envelope of a real-time push
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from sosauto.core.schemas import CamelModel
from sosauto.database.enums import NotificationType


class NotificationRead(CamelModel):
    id: UUID = Field(..., description="Notification ID")
    user_id: UUID = Field(..., description="Recipient user ID")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="Notification body")
    type: NotificationType = Field(..., description="INFO, SUCCESS, WARNING or ERROR")
    is_read: bool = Field(..., description="Whether the recipient has read it")
    created_at: datetime = Field(..., description="Creation timestamp")


class NotificationFrame(CamelModel):
    """Frame written to live notification sockets."""

    event: Literal["notification"] = "notification"
    data: NotificationRead
