"""SQLAlchemy models."""

from app.models.user import User, UserRole
from app.models.job import Job, JobStatus
from app.models.assignment import Assignment
from app.models.qr_token import QRToken

__all__ = ["User", "UserRole", "Job", "JobStatus", "Assignment", "QRToken"]
