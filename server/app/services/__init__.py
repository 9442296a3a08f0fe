"""Application services."""

from app.services.job_service import JobNotFoundError, JobService
from app.services.token_store import SQLTokenStore

__all__ = ["JobNotFoundError", "JobService", "SQLTokenStore"]
