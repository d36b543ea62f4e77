"""
backend/sosauto/notification/routes.py

Notification Routes
- List my notifications (latest 50)
- Mark one as read
- Delete one / clear all
- WebSocket stream of live notifications

All endpoints require authentication.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from sosauto.core.dependencies import (
    WebSocketAuthError,
    get_connection_manager,
    get_current_user,
    get_current_user_from_ws,
)
from sosauto.core.limiter import limiter
from sosauto.core.schemas import MessageResponse
from sosauto.database.models import User
from sosauto.database.session import get_db
from sosauto.notification import schemas
from sosauto.notification.manager import ConnectionManager
from sosauto.notification.services import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])
ws_router = APIRouter(tags=["Notifications"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]
ManagerDep = Annotated[ConnectionManager, Depends(get_connection_manager)]


@router.get(
    "",
    response_model=list[schemas.NotificationRead],
    status_code=status.HTTP_200_OK,
    summary="List Notifications",
    description="Latest 50 notifications of the current user, newest first.",
)
@limiter.limit("30/minute")
async def list_notifications(
    request: Request, db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.NotificationRead]:
    return await NotificationService(db).list_for_user(current_user)


@router.put(
    "/{notification_id}/read",
    response_model=schemas.NotificationRead,
    status_code=status.HTTP_200_OK,
    summary="Mark Notification Read",
)
@limiter.limit("60/minute")
async def mark_notification_read(
    request: Request,
    notification_id: UUID,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.NotificationRead:
    return await NotificationService(db).mark_as_read(current_user, notification_id)


@router.delete(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Clear Notifications",
    description="Delete every notification of the current user.",
)
@limiter.limit("10/minute")
async def clear_notifications(
    request: Request, db: DBDep, current_user: AuthenticatedUserDep
) -> MessageResponse:
    return await NotificationService(db).clear_all(current_user)


@router.delete(
    "/{notification_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete Notification",
)
@limiter.limit("30/minute")
async def delete_notification(
    request: Request,
    notification_id: UUID,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> MessageResponse:
    return await NotificationService(db).delete(current_user, notification_id)


# ---------------------------------------------------
# WebSocket: Live Notifications
# ---------------------------------------------------
@ws_router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, db: DBDep, manager: ManagerDep) -> None:
    """
    Authenticates with ?token=, Bearer header or cookie, then keeps the socket
    registered for the user until the client disconnects. Incoming frames are ignored.
    """
    try:
        user = await get_current_user_from_ws(websocket, db)
    except WebSocketAuthError as e:
        logger.warning(f"[PUSH] WebSocket rejected: {e}")
        return

    user_id = user.id
    # Release the DB connection; the socket may stay open for hours
    await db.close()

    await manager.connect(user_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(user_id, websocket)
