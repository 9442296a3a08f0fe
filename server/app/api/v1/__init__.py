"""API v1 routers."""

from fastapi import APIRouter

from app.api.v1 import auth, health, jobs, qr

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
# QR routes first so /jobs/check-token is matched before /jobs/{job_id}
api_router.include_router(qr.router, prefix="/jobs", tags=["qr"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
