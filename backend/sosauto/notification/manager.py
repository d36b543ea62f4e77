"""
notification/manager.py

WebSocket connection manager for live notifications.
- Tracks open sockets per user id for the lifetime of this process
- Pushes a JSON frame to every socket a user has open
"""

import logging
from typing import Any, Protocol
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationTransport(Protocol):
    """Real-time delivery channel used by the fan-out."""

    async def emit(self, user_id: UUID, payload: dict[str, Any]) -> None: ...


class ConnectionManager:
    """
    Manages WebSocket connections per user.
    Sockets connected to another process are not visible here.
    """

    def __init__(self) -> None:
        # Mapping of user_id to list of connected WebSocket clients
        self.active_connections: dict[UUID, list[WebSocket]] = {}

    async def connect(self, user_id: UUID, websocket: WebSocket) -> None:
        """
        Accepts a new WebSocket connection and registers it for the user.
        """
        await websocket.accept()
        self.active_connections.setdefault(user_id, []).append(websocket)
        logger.info(f"[PUSH] User {user_id} connected ({len(self.active_connections[user_id])} socket(s))")

    def disconnect(self, user_id: UUID, websocket: WebSocket) -> None:
        """
        Removes a WebSocket connection from the user's pool.
        """
        sockets = self.active_connections.get(user_id)
        if not sockets:
            return
        if websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            del self.active_connections[user_id]
        logger.info(f"[PUSH] User {user_id} disconnected")

    def is_connected(self, user_id: UUID) -> bool:
        return bool(self.active_connections.get(user_id))

    async def emit(self, user_id: UUID, payload: dict[str, Any]) -> None:
        """
        Sends a payload to every socket of the user.
        No connection means nothing to do; dead sockets are dropped.
        """
        sockets = list(self.active_connections.get(user_id, []))
        if not sockets:
            logger.debug(f"[PUSH] No live connection for user {user_id}, skipping")
            return

        for connection in sockets:
            try:
                await connection.send_json(payload)
            except Exception as e:
                logger.warning(f"[PUSH] Dropping dead socket for user {user_id}: {e}")
                self.disconnect(user_id, connection)
