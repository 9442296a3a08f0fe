"""Authentication endpoints.

Sign-in itself happens at the identity provider; these endpoints only cover
what the API needs to know about the signed-in user.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.user import RoleSelection, UserResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def get_current_user_info(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    """
    Get current authenticated user information.

    Requires authentication.
    """
    return UserResponse.model_validate(current_user)


@router.post("/role", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def select_role(
    selection: RoleSelection,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """
    Choose requester or helper during onboarding.

    A role can only be chosen once.
    """
    if current_user.role is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Role already selected")

    current_user.role = selection.role.value
    await db.commit()
    await db.refresh(current_user)
    logger.info("User role selected", user_id=str(current_user.id), role=current_user.role)
    return UserResponse.model_validate(current_user)
