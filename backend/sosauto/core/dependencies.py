"""
backend/sosauto/core/dependencies.py

Authentication, Authorization and Service Dependencies

Provides authentication and role-based access control (RBAC) for FastAPI routes:
- Validates JWT tokens from Bearer header OR HttpOnly cookie
- Retrieves authenticated user from the database
- Restricts access based on user roles

Application Services:
- Exposes the objects built by the lifespan (fan-out dispatcher,
  WebSocket registry, optional Redis client) from `app.state`.
"""

import logging
from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Cookie, Depends, HTTPException, WebSocket, status
from fastapi.security import OAuth2PasswordBearer
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from sosauto.core.tokens import InvalidTokenError, decode_access_token
from sosauto.database.enums import UserRole
from sosauto.database.models import User
from sosauto.database.session import get_db
from sosauto.notification.dispatcher import NotificationDispatcher
from sosauto.notification.manager import ConnectionManager

# ---------------------------------------------------
# Logger Configuration
# ---------------------------------------------------
logger = logging.getLogger(__name__)

# ---------------------------------------------------
# OAuth2 Configuration
# ---------------------------------------------------
# auto_error=False so a missing header still lets the cookie be checked
oauth2_scheme: OAuth2PasswordBearer = OAuth2PasswordBearer(
    tokenUrl="/auth/login", auto_error=False
)


# ---------------------------------------------------
# Authentication Functions
# ---------------------------------------------------
async def _user_from_token(token: str | None, db: AsyncSession) -> User | None:
    if token is None:
        logger.debug("[AUTH] No token found in Authorization header or access_token cookie.")
        return None

    try:
        token_data = decode_access_token(token)
    except InvalidTokenError:
        return None

    result = await db.execute(select(User).filter(User.id == token_data.sub))
    user = result.scalar_one_or_none()

    if not user:
        logger.warning(f"[AUTH] JWT valid but no matching user found: user_id={token_data.sub}")
        return None

    if not user.is_active:
        logger.warning(f"[AUTH] Authentication attempt by inactive user: {user.id}")
        return None

    return user


async def get_current_user(
    token_header: Annotated[str | None, Depends(oauth2_scheme)] = None,
    token_cookie: Annotated[str | None, Cookie(alias="access_token")] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Authenticate the current user based on the provided JWT access token,
    checking Bearer header first, then HttpOnly cookie.

    Raises:
        HTTPException: 401 Unauthorized if authentication fails.
    """
    token = token_header or token_cookie
    user = await _user_from_token(token, db)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(
        f"[AUTH] User {user.id} authenticated successfully via {'Header' if token_header else 'Cookie'}."
    )
    return user


class WebSocketAuthError(Exception):
    """Raised after a WebSocket has been closed for failed authentication."""


async def get_current_user_from_ws(websocket: WebSocket, db: AsyncSession) -> User:
    """
    Authenticate the current user from a WebSocket connection.
    Tries the `token` query parameter, then Authorization header, then cookie.
    The socket is closed with 1008 when authentication fails.
    """
    token = websocket.query_params.get("token")
    token_header = websocket.headers.get("Authorization")
    if not token and token_header and token_header.startswith("Bearer "):
        token = token_header.removeprefix("Bearer ")
    if not token:
        token = websocket.cookies.get("access_token")

    if not token:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Authentication token missing."
        )
        raise WebSocketAuthError("Missing token in WebSocket query, headers or cookies.")

    user = await _user_from_token(token, db)
    if user is None:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Authentication failed."
        )
        raise WebSocketAuthError("Invalid WebSocket token.")
    return user


# ---------------------------------------------------
# Authorization Functions (Role-Based)
# ---------------------------------------------------
def require_roles(*roles: UserRole) -> Callable[..., Coroutine[Any, Any, User]]:
    """
    Dependency to restrict access to users having any of the specified roles.
    """

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(
                f"[RBAC] Access denied: User {user.id} with role {user.role} attempted access (allowed roles: {roles})"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role: {user.role.value}",
            )
        return user

    return checker


# ---------------------------------------------------
# Application Service Dependencies
# ---------------------------------------------------
def get_dispatcher(connection: HTTPConnection) -> NotificationDispatcher:
    return connection.app.state.dispatcher


def get_connection_manager(connection: HTTPConnection) -> ConnectionManager:
    return connection.app.state.connection_manager


def get_cache(connection: HTTPConnection) -> Redis | None:
    """Redis client when REDIS_URL is configured, otherwise None."""
    return getattr(connection.app.state, "redis", None)
