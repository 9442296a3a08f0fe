"""Single-process TokenStore backed by dictionaries."""

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional
from uuid import UUID, uuid4

from app.core.token_store import (
    AssignmentRecord,
    DuplicateTokenError,
    JobSnapshot,
    TokenRecord,
    TokenSnapshot,
    TokenStore,
)
from app.models.job import JobStatus


class MemoryTokenStore(TokenStore):
    """In-memory store; writes are serialised by one ``asyncio.Lock``."""

    def __init__(self) -> None:
        self._jobs: Dict[UUID, str] = {}
        self._tokens: Dict[UUID, TokenRecord] = {}
        self._by_token: Dict[str, UUID] = {}
        self._by_short_code: Dict[str, UUID] = {}
        self._assignments: Dict[UUID, AssignmentRecord] = {}
        self._lock = asyncio.Lock()

    def add_job(self, job_id: Optional[UUID] = None, status: str = JobStatus.OPEN.value) -> UUID:
        job_id = job_id or uuid4()
        self._jobs[job_id] = status
        return job_id

    def set_job_status(self, job_id: UUID, status: str) -> None:
        if job_id not in self._jobs:
            raise KeyError(job_id)
        self._jobs[job_id] = status

    def get_assignment(self, job_id: UUID) -> Optional[AssignmentRecord]:
        return self._assignments.get(job_id)

    def get_token(self, token_id: UUID) -> Optional[TokenRecord]:
        return self._tokens.get(token_id)

    async def get_job(self, job_id: UUID) -> Optional[JobSnapshot]:
        status = self._jobs.get(job_id)
        if status is None:
            return None
        return JobSnapshot(id=job_id, status=status, has_assignment=job_id in self._assignments)

    async def _snapshot(self, token_id: Optional[UUID]) -> Optional[TokenSnapshot]:
        # Yield like a real driver round trip so concurrent callers interleave.
        await asyncio.sleep(0)
        # The row may have been deleted while we yielded.
        record = self._tokens.get(token_id) if token_id is not None else None
        if record is None:
            return None
        job = await self.get_job(record.job_id)
        if job is None:
            return None
        return TokenSnapshot(record=record, job=job)

    async def find_by_token(self, token: str) -> Optional[TokenSnapshot]:
        return await self._snapshot(self._by_token.get(token))

    async def find_by_short_code(self, short_code: str) -> Optional[TokenSnapshot]:
        return await self._snapshot(self._by_short_code.get(short_code))

    async def create_token(self, record: TokenRecord) -> TokenRecord:
        async with self._lock:
            if record.job_id not in self._jobs:
                raise KeyError(record.job_id)
            if record.token in self._by_token:
                raise DuplicateTokenError("token")
            if record.short_code in self._by_short_code:
                raise DuplicateTokenError("short_code")
            self._tokens[record.id] = record
            self._by_token[record.token] = record.id
            self._by_short_code[record.short_code] = record.id
            return record

    async def consume(
        self,
        token_id: UUID,
        job_id: UUID,
        helper_id: UUID,
        from_status: str,
        to_status: str,
        now: datetime,
    ) -> Optional[AssignmentRecord]:
        async with self._lock:
            record = self._tokens.get(token_id)
            if record is None or record.job_id != job_id:
                return None
            if record.used or record.expires_at <= now:
                return None
            if self._jobs.get(job_id) != from_status or job_id in self._assignments:
                return None

            await asyncio.sleep(0)

            self._tokens[token_id] = replace(
                record, used=True, consumed_by=helper_id, consumed_at=now
            )
            assignment = AssignmentRecord(
                id=uuid4(), job_id=job_id, helper_id=helper_id, created_at=now
            )
            self._assignments[job_id] = assignment
            self._jobs[job_id] = to_status
            return assignment

    async def delete_expired(self, now: datetime) -> int:
        async with self._lock:
            expired = [record for record in self._tokens.values() if record.expires_at <= now]
            for record in expired:
                del self._tokens[record.id]
                self._by_token.pop(record.token, None)
                self._by_short_code.pop(record.short_code, None)
            return len(expired)
