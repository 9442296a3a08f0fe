"""SQLAlchemy-backed TokenStore."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.token_store import (
    AssignmentRecord,
    DuplicateTokenError,
    JobSnapshot,
    TokenRecord,
    TokenSnapshot,
)
from app.models.assignment import Assignment
from app.models.job import Job
from app.models.qr_token import QRToken

logger = structlog.get_logger(__name__)


def _duplicate_field(exc: IntegrityError) -> Optional[str]:
    """Name the unique column an IntegrityError tripped on, if it was one of ours."""
    message = str(exc.orig).lower()
    if "unique" not in message and "duplicate" not in message:
        return None
    if "short_code" in message:
        return "short_code"
    if "qr_tokens.token" in message or "qr_tokens_token" in message:
        return "token"
    return None


class SQLTokenStore:
    """Token store over an ``AsyncSession``.

    Each write method commits or rolls back its own unit of work.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_job(self, job_id: UUID) -> Optional[JobSnapshot]:
        result = await self.db.execute(
            select(Job.id, Job.status, Assignment.id)
            .outerjoin(Assignment, Assignment.job_id == Job.id)
            .where(Job.id == job_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return JobSnapshot(id=row[0], status=row[1], has_assignment=row[2] is not None)

    async def _find(self, criterion) -> Optional[TokenSnapshot]:
        # Plain columns rather than entities so a stale identity map can't
        # answer for a row another transaction just consumed.
        result = await self.db.execute(
            select(
                QRToken.id,
                QRToken.job_id,
                QRToken.token,
                QRToken.short_code,
                QRToken.expires_at,
                QRToken.used,
                QRToken.consumed_by,
                QRToken.consumed_at,
                Job.status,
                Assignment.id,
            )
            .join(Job, Job.id == QRToken.job_id)
            .outerjoin(Assignment, Assignment.job_id == Job.id)
            .where(criterion)
        )
        row = result.one_or_none()
        if row is None:
            return None
        record = TokenRecord(
            id=row[0],
            job_id=row[1],
            token=row[2],
            short_code=row[3],
            expires_at=row[4],
            used=row[5],
            consumed_by=row[6],
            consumed_at=row[7],
        )
        job = JobSnapshot(id=row[1], status=row[8], has_assignment=row[9] is not None)
        return TokenSnapshot(record=record, job=job)

    async def find_by_token(self, token: str) -> Optional[TokenSnapshot]:
        return await self._find(QRToken.token == token)

    async def find_by_short_code(self, short_code: str) -> Optional[TokenSnapshot]:
        return await self._find(QRToken.short_code == short_code)

    async def create_token(self, record: TokenRecord) -> TokenRecord:
        self.db.add(
            QRToken(
                id=record.id,
                job_id=record.job_id,
                token=record.token,
                short_code=record.short_code,
                expires_at=record.expires_at,
                used=record.used,
            )
        )
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            field = _duplicate_field(exc)
            if field is None:
                raise
            raise DuplicateTokenError(field) from exc
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
        """
        Consume a token in one transaction.

        Both updates are conditional, so a concurrent winner leaves them
        matching zero rows; the unique ``assignments.job_id`` constraint backs
        that up if two transactions still get as far as the insert.
        """
        try:
            marked = await self.db.execute(
                update(QRToken)
                .where(
                    QRToken.id == token_id,
                    QRToken.job_id == job_id,
                    QRToken.used.is_(False),
                    QRToken.expires_at > now,
                )
                .values(used=True, consumed_by=helper_id, consumed_at=now)
                .execution_options(synchronize_session=False)
            )
            if marked.rowcount != 1:
                await self.db.rollback()
                return None

            moved = await self.db.execute(
                update(Job)
                .where(Job.id == job_id, Job.status == from_status)
                .values(status=to_status, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if moved.rowcount != 1:
                await self.db.rollback()
                return None

            assignment_id = uuid4()
            self.db.add(
                Assignment(id=assignment_id, job_id=job_id, helper_id=helper_id, created_at=now)
            )
            await self.db.flush()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("Assignment already exists for job", job_id=str(job_id))
            return None

        return AssignmentRecord(
            id=assignment_id,
            job_id=job_id,
            helper_id=helper_id,
            created_at=now,
        )

    async def delete_expired(self, now: datetime) -> int:
        result = await self.db.execute(
            delete(QRToken)
            .where(QRToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0
