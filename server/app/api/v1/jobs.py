"""Job management endpoints."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.state_machine import InvalidTransitionError
from app.dependencies import get_helper, get_job_service, get_marketplace_user, get_requester
from app.models.job import Job, JobStatus
from app.models.user import User, UserRole
from app.schemas.job import JobCreate, JobListResponse, JobResponse
from app.services.job_service import JobService

router = APIRouter()


async def _load_job(job_service: JobService, job_id: UUID) -> Job:
    job = await job_service.get_job(job_id)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


def _is_assigned_helper(job: Job, user: User) -> bool:
    return job.assignment is not None and job.assignment.helper_id == user.id


async def _transition(job_service: JobService, job: Job, target: JobStatus) -> JobResponse:
    try:
        updated = await job_service.update_job_status(job.id, target)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return JobResponse.model_validate(updated)


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    job_data: JobCreate,
    current_user: Annotated[User, Depends(get_requester)],
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> JobResponse:
    """
    Create a new job.

    Only requesters can create jobs. Returns the created job with status OPEN.
    """
    job = await job_service.create_job(
        requester_id=current_user.id,
        title=job_data.title,
        description=job_data.description,
        location=job_data.location,
        event_time=job_data.event_time,
        content_type=job_data.content_type.value,
        price_tier=job_data.price_tier.value,
        notes=job_data.notes,
    )
    return JobResponse.model_validate(job)


@router.get("", response_model=JobListResponse, status_code=status.HTTP_200_OK)
async def list_jobs(
    current_user: Annotated[User, Depends(get_marketplace_user)],
    job_service: Annotated[JobService, Depends(get_job_service)],
    status: Optional[str] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=100, description="Page size"),
    offset: int = Query(0, ge=0, description="Page offset"),
) -> JobListResponse:
    """
    List the caller's jobs.

    Requesters see the jobs they created; helpers see the jobs they are
    assigned to.
    """
    if current_user.role == UserRole.REQUESTER.value:
        jobs, total = await job_service.list_requester_jobs(
            current_user.id, status=status, limit=limit, offset=offset
        )
    else:
        jobs, total = await job_service.list_helper_jobs(
            current_user.id, status=status, limit=limit, offset=offset
        )

    return JobListResponse(
        items=[JobResponse.model_validate(job) for job in jobs],
        total=total,
        page=offset // limit + 1 if limit > 0 else 1,
        page_size=limit,
    )


@router.get("/{job_id}", response_model=JobResponse, status_code=status.HTTP_200_OK)
async def get_job(
    job_id: UUID,
    current_user: Annotated[User, Depends(get_marketplace_user)],
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> JobResponse:
    """
    Get job details by ID.

    Visible to the requester who owns the job and to its assigned helper.
    """
    job = await _load_job(job_service, job_id)

    if job.requester_id != current_user.id and not _is_assigned_helper(job, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this job"
        )

    return JobResponse.model_validate(job)


@router.post("/{job_id}/start", response_model=JobResponse, status_code=status.HTTP_200_OK)
async def start_job(
    job_id: UUID,
    current_user: Annotated[User, Depends(get_helper)],
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> JobResponse:
    """Assigned helper starts capturing: ACCEPTED -> IN_PROGRESS."""
    job = await _load_job(job_service, job_id)
    if not _is_assigned_helper(job, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not assigned to this job")
    return await _transition(job_service, job, JobStatus.IN_PROGRESS)


@router.post("/{job_id}/submit", response_model=JobResponse, status_code=status.HTTP_200_OK)
async def submit_job(
    job_id: UUID,
    current_user: Annotated[User, Depends(get_helper)],
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> JobResponse:
    """Assigned helper submits captured content for review: IN_PROGRESS -> IN_REVIEW."""
    job = await _load_job(job_service, job_id)
    if not _is_assigned_helper(job, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not assigned to this job")
    return await _transition(job_service, job, JobStatus.IN_REVIEW)


@router.post("/{job_id}/approve", response_model=JobResponse, status_code=status.HTTP_200_OK)
async def approve_job(
    job_id: UUID,
    current_user: Annotated[User, Depends(get_requester)],
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> JobResponse:
    """Requester approves the submitted content: IN_REVIEW -> COMPLETED."""
    job = await _load_job(job_service, job_id)
    if job.requester_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your job")
    return await _transition(job_service, job, JobStatus.COMPLETED)


@router.post("/{job_id}/cancel", response_model=JobResponse, status_code=status.HTTP_200_OK)
async def cancel_job(
    job_id: UUID,
    current_user: Annotated[User, Depends(get_requester)],
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> JobResponse:
    """Requester cancels a job that has not finished yet."""
    job = await _load_job(job_service, job_id)
    if job.requester_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your job")
    return await _transition(job_service, job, JobStatus.CANCELLED)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: UUID,
    current_user: Annotated[User, Depends(get_requester)],
    job_service: Annotated[JobService, Depends(get_job_service)],
) -> None:
    """
    Delete a job together with its assignment and QR tokens.

    Returns 404 if job not found, 403 if the caller doesn't own the job.
    """
    job = await _load_job(job_service, job_id)

    if job.requester_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this job"
        )

    await job_service.delete_job(job_id)
