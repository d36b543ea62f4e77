"""
core/tokens.py

Token generation and decoding utilities:
- JWT access token with expiration and JTI
- Access token decoder returning the subject user id
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from sosauto.core.config import settings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """Claims carried by an access token."""

    sub: uuid.UUID
    jti: str | None = None


class InvalidTokenError(Exception):
    """Raised when an access token cannot be trusted."""


# ------------------------------------------------------
# --- Access Token ---
# ------------------------------------------------------
def create_access_token(user_id: uuid.UUID | str, expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token with expiration and unique JTI.

    Args:
        user_id: The user ID to include as the subject.
        expires_delta: Optional custom expiration time. Defaults to settings.

    Returns:
        str: Encoded JWT access token.
    """
    expire: datetime = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    jti: str = str(uuid.uuid4())
    payload: dict[str, Any] = {"sub": str(user_id), "exp": expire, "jti": jti}

    logger.info(f"Issuing access token for sub={user_id} exp={expire} jti={jti}")
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return str(token)


def decode_access_token(token: str) -> TokenPayload:
    """
    Decodes and validates an access token.

    Raises:
        InvalidTokenError: If the token is expired, malformed or lacks a valid subject.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return TokenPayload(**payload)
    except (JWTError, ValidationError) as e:
        logger.warning(f"[AUTH] JWT decoding/validation failed: {e}")
        raise InvalidTokenError(str(e)) from e
