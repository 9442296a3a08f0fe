"""QR join token endpoints."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.qr_tokens import QRTokenManager
from app.dependencies import get_helper, get_job_service, get_requester, get_token_manager
from app.models.job import JobStatus
from app.models.user import User
from app.schemas.qr import (
    AssignmentResponse,
    IssuedToken,
    JoinResponse,
    TokenCheckResult,
    TokenRequest,
)
from app.services.job_service import JobService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/check-token", response_model=TokenCheckResult, status_code=status.HTTP_200_OK)
async def check_token(
    body: TokenRequest,
    token_manager: Annotated[QRTokenManager, Depends(get_token_manager)],
) -> TokenCheckResult:
    """
    Check a token or short code without consuming it.

    Lets a client pre-flight a scan and show a friendly reason before joining.
    """
    return await token_manager.check_token(body.token)


@router.post("/{job_id}/qr", response_model=IssuedToken, status_code=status.HTTP_200_OK)
async def generate_qr_token(
    job_id: UUID,
    current_user: Annotated[User, Depends(get_requester)],
    job_service: Annotated[JobService, Depends(get_job_service)],
    token_manager: Annotated[QRTokenManager, Depends(get_token_manager)],
) -> IssuedToken:
    """
    Issue a join token for an open job.

    Only the requester who owns the job may do this. Returns the token for
    the QR image, the 6-digit short code and the expiry time.
    """
    job = await job_service.get_job(job_id)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

    if job.requester_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your job")

    if job.status != JobStatus.OPEN.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot generate QR for {job.status} jobs",
        )

    return await token_manager.issue_token(job_id)


@router.post("/{job_id}/join", response_model=JoinResponse, status_code=status.HTTP_200_OK)
async def join_job(
    job_id: UUID,
    body: TokenRequest,
    current_user: Annotated[User, Depends(get_helper)],
    token_manager: Annotated[QRTokenManager, Depends(get_token_manager)],
) -> JoinResponse:
    """
    Join a job by redeeming its token or short code.

    The token must belong to ``job_id``; that is checked before anything is
    consumed so a mismatched scan doesn't burn a valid code.
    """
    check = await token_manager.check_token(body.token)
    if check.valid and check.job_id != job_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Token does not match this job"
        )

    assignment = await token_manager.consume_token(body.token, current_user.id)
    if assignment is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=check.reason or "Invalid, expired, or already used token",
        )

    logger.info("Helper joined job", job_id=str(job_id), helper_id=str(current_user.id))
    return JoinResponse(
        job_id=assignment.job_id,
        assignment=AssignmentResponse.model_validate(assignment),
    )
