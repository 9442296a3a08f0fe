"""Bearer token helpers.

Users are provisioned by the identity-provider bridge, which hands the client
an access token signed with ``JWT_SECRET_KEY``. This module only mints and
decodes those tokens.
"""

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from app.config import settings
from app.db.types import utcnow


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT carrying ``data`` plus an ``exp`` claim."""
    to_encode = data.copy()
    expire = utcnow() + (
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT.

    Raises:
        ValueError: If the token is malformed, expired or badly signed
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise ValueError(f"Invalid token: {e}") from e
