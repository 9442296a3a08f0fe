"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated, Callable
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.qr_tokens import QRTokenConfig, QRTokenManager
from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.user import User, UserRole
from app.services.job_service import JobService
from app.services.token_store import SQLTokenStore

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_access_token(credentials.credentials)
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exception
    return user


def require_role(*roles: UserRole) -> Callable:
    """Build a dependency that only lets users with one of ``roles`` through."""
    allowed = {role.value for role in roles}

    async def _require_role(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(sorted(allowed))}",
            )
        return current_user

    return _require_role


get_requester = require_role(UserRole.REQUESTER)
get_helper = require_role(UserRole.HELPER)
get_marketplace_user = require_role(UserRole.REQUESTER, UserRole.HELPER)


def get_qr_token_config() -> QRTokenConfig:
    return QRTokenConfig.from_settings(settings)


async def get_job_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JobService:
    return JobService(db)


async def get_token_manager(
    db: Annotated[AsyncSession, Depends(get_db)],
    config: Annotated[QRTokenConfig, Depends(get_qr_token_config)],
) -> QRTokenManager:
    """Get a token manager bound to the request's database session."""
    return QRTokenManager(SQLTokenStore(db), config)
