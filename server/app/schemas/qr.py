"""QR join token schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class IssuedToken(BaseModel):
    """Token material handed to the requester for QR rendering and display."""

    token: str
    short_code: str = Field(..., pattern=r"^\d{6}$")
    expires_at: datetime


class TokenCheckResult(BaseModel):
    """Outcome of a non-consuming token check."""

    valid: bool
    job_id: UUID | None = None
    reason: str | None = None


class TokenRequest(BaseModel):
    """Body carrying a full token or a 6-digit short code."""

    token: str = Field(..., min_length=1, max_length=256, description="Token or short code")


class AssignmentResponse(BaseModel):
    """Schema for assignment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_id: UUID
    helper_id: UUID
    created_at: datetime


class JoinResponse(BaseModel):
    success: bool = True
    message: str = "Successfully joined job"
    job_id: UUID
    assignment: AssignmentResponse
