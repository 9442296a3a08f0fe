"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.user import UserRole


class UserResponse(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None
    role: str | None
    created_at: datetime
    updated_at: datetime


class RoleSelection(BaseModel):
    """Role chosen during onboarding."""

    role: UserRole
