"""Pydantic schemas for request/response validation."""

from app.schemas.user import RoleSelection, UserResponse
from app.schemas.job import JobCreate, JobListResponse, JobResponse
from app.schemas.qr import (
    AssignmentResponse,
    IssuedToken,
    JoinResponse,
    TokenCheckResult,
    TokenRequest,
)

__all__ = [
    "RoleSelection",
    "UserResponse",
    "JobCreate",
    "JobListResponse",
    "JobResponse",
    "AssignmentResponse",
    "IssuedToken",
    "JoinResponse",
    "TokenCheckResult",
    "TokenRequest",
]
