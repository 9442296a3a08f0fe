"""Health check endpoints."""

import asyncio
from typing import Any

import redis.asyncio as redis
from fastapi import APIRouter, status
from sqlalchemy import text

from app.config import settings
from app.db.session import engine

router = APIRouter()


async def check_database() -> dict[str, Any]:
    """Check database connectivity."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy", "message": "Database connection successful"}
    except Exception as e:
        return {"status": "unhealthy", "message": str(e)}


async def check_redis() -> dict[str, Any]:
    """Check Redis connectivity (Celery broker)."""
    try:
        redis_client = redis.from_url(settings.REDIS_URL)
        try:
            await redis_client.ping()
        finally:
            await redis_client.aclose()
        return {"status": "healthy", "message": "Redis connection successful"}
    except Exception as e:
        return {"status": "unhealthy", "message": str(e)}


@router.get("", status_code=status.HTTP_200_OK)
async def health_check() -> dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "healthy"}


@router.get("/detailed", status_code=status.HTTP_200_OK)
async def detailed_health_check() -> dict[str, Any]:
    """Detailed health check with component status."""
    db_status, redis_status = await asyncio.gather(check_database(), check_redis())

    all_healthy = all(
        component["status"] == "healthy" for component in (db_status, redis_status)
    )

    return {
        "status": "healthy" if all_healthy else "degraded",
        "components": {
            "database": db_status,
            "redis": redis_status,
        },
    }
