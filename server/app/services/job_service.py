"""Job service for managing job lifecycle."""

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.state_machine import InvalidTransitionError, validate_transition
from app.db.types import utcnow
from app.models.assignment import Assignment
from app.models.job import Job, JobStatus

logger = structlog.get_logger(__name__)


class JobNotFoundError(LookupError):
    """Raised when a job id does not exist."""


class JobService:
    """Service for job management operations."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize job service with database session."""
        self.db = db

    async def create_job(
        self,
        requester_id: UUID,
        title: str,
        description: str,
        location: str,
        event_time: datetime,
        content_type: str,
        price_tier: str,
        notes: str | None = None,
    ) -> Job:
        """
        Create a new open job.

        Args:
            requester_id: User ID of the requester creating the job
            title: Short job title
            description: What should be captured
            location: Where the event takes place
            event_time: When the event takes place
            content_type: photos, videos or both
            price_tier: basic, standard or premium
            notes: Optional free-form notes

        Returns:
            Created Job instance
        """
        job = Job(
            requester_id=requester_id,
            title=title,
            description=description,
            location=location,
            event_time=event_time,
            content_type=content_type,
            price_tier=price_tier,
            notes=notes,
            status=JobStatus.OPEN.value,
        )
        self.db.add(job)
        await self.db.commit()

        logger.info("Job created", job_id=str(job.id), requester_id=str(requester_id))
        return await self.get_job(job.id)

    async def get_job(self, job_id: UUID) -> Job | None:
        """Get job by ID, with its assignment loaded and fresh from the database."""
        result = await self.db.execute(
            select(Job)
            .options(selectinload(Job.assignment))
            .where(Job.id == job_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_requester_jobs(
        self,
        requester_id: UUID,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Job], int]:
        """
        List jobs a requester created.

        Returns:
            Tuple of (jobs list, total count)
        """
        query = select(Job).where(Job.requester_id == requester_id)
        return await self._paginate(query, status, limit, offset)

    async def list_helper_jobs(
        self,
        helper_id: UUID,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Job], int]:
        """
        List jobs a helper is assigned to.

        Returns:
            Tuple of (jobs list, total count)
        """
        query = select(Job).join(Assignment, Assignment.job_id == Job.id).where(
            Assignment.helper_id == helper_id
        )
        return await self._paginate(query, status, limit, offset)

    async def _paginate(self, query, status: str | None, limit: int, offset: int) -> tuple[list[Job], int]:
        if status:
            query = query.where(Job.status == status)

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar_one()

        # Get paginated results
        query = (
            query.options(selectinload(Job.assignment))
            .order_by(Job.created_at.desc())
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        jobs = result.scalars().all()

        return list(jobs), total

    async def update_job_status(self, job_id: UUID, status: JobStatus) -> Job:
        """
        Update job status with validation.

        Args:
            job_id: Job ID
            status: New status

        Returns:
            Updated Job instance

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidTransitionError: If transition is invalid
        """
        job = await self.get_job(job_id)
        if not job:
            raise JobNotFoundError(f"Job not found: {job_id}")

        old_status = job.status
        is_valid, error = validate_transition(old_status, status)
        if not is_valid:
            raise InvalidTransitionError(error)

        now = utcnow()
        values = {"status": status.value, "updated_at": now}
        if status == JobStatus.IN_REVIEW:
            values["submitted_at"] = now
        if status == JobStatus.COMPLETED:
            values["completed_at"] = now

        # Only applies if nobody moved the job since we read it.
        result = await self.db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == old_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            current = await self.get_job(job_id)
            if not current:
                raise JobNotFoundError(f"Job not found: {job_id}")
            _, error = validate_transition(current.status, status)
            logger.info(
                "Job status changed concurrently",
                job_id=str(job_id),
                expected_status=old_status,
                current_status=current.status,
                to_status=status.value,
            )
            raise InvalidTransitionError(
                error or f"Job status changed from {old_status} to {current.status}, please retry"
            )

        await self.db.commit()
        logger.info(
            "Job status changed",
            job_id=str(job_id),
            from_status=old_status,
            to_status=status.value,
        )
        return await self.get_job(job_id)

    async def delete_job(self, job_id: UUID) -> bool:
        """
        Delete a job along with its assignment and QR tokens.

        Returns:
            True if deleted, False if not found
        """
        job = await self.get_job(job_id)
        if not job:
            return False

        await self.db.delete(job)
        await self.db.commit()
        logger.info("Job deleted", job_id=str(job_id))
        return True
