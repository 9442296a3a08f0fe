"""Persistence port used by the QR token manager."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID


class DuplicateTokenError(Exception):
    """A new token collided with an existing ``token`` or ``short_code``."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Duplicate QR token {field}")
        self.field = field


@dataclass(frozen=True)
class JobSnapshot:
    id: UUID
    status: str
    has_assignment: bool


@dataclass(frozen=True)
class TokenRecord:
    id: UUID
    job_id: UUID
    token: str
    short_code: str
    expires_at: datetime
    used: bool = False
    consumed_by: Optional[UUID] = None
    consumed_at: Optional[datetime] = None


@dataclass(frozen=True)
class TokenSnapshot:
    """A token row together with the state of the job it belongs to."""

    record: TokenRecord
    job: JobSnapshot


@dataclass(frozen=True)
class AssignmentRecord:
    id: UUID
    job_id: UUID
    helper_id: UUID
    created_at: datetime


class TokenStore(Protocol):
    async def get_job(self, job_id: UUID) -> Optional[JobSnapshot]:
        ...

    async def find_by_token(self, token: str) -> Optional[TokenSnapshot]:
        ...

    async def find_by_short_code(self, short_code: str) -> Optional[TokenSnapshot]:
        ...

    async def create_token(self, record: TokenRecord) -> TokenRecord:
        """Persist a new token; raise ``DuplicateTokenError`` on a unique collision."""
        ...

    async def consume(
        self,
        token_id: UUID,
        job_id: UUID,
        helper_id: UUID,
        from_status: str,
        to_status: str,
        now: datetime,
    ) -> Optional[AssignmentRecord]:
        """
        Atomically mark the token used, create the assignment and move the job.

        Returns None, with nothing written, when the token is no longer usable,
        the job has left ``from_status`` or already has an assignment.
        """
        ...

    async def delete_expired(self, now: datetime) -> int:
        ...
