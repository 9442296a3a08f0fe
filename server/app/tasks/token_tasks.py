"""Celery tasks for QR token housekeeping."""

import asyncio
import logging

from app.celery_app import celery_app
from app.core.qr_tokens import QRTokenConfig, QRTokenManager
from app.config import settings
from app.db.session import session_scope
from app.services.token_store import SQLTokenStore

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.cleanup_expired_tokens")
def cleanup_expired_tokens_task():
    """
    Celery task to delete expired QR tokens.

    Expiry is re-checked on every check and consume, so a skipped or late
    run only leaves dead rows behind.
    """
    return asyncio.run(cleanup_expired_tokens_async())


async def cleanup_expired_tokens_async() -> dict:
    """Async implementation of expired token cleanup."""
    async with session_scope() as db:
        manager = QRTokenManager(SQLTokenStore(db), QRTokenConfig.from_settings(settings))
        deleted = await manager.cleanup_expired()

    logger.info(f"Deleted {deleted} expired QR tokens")
    return {"success": True, "deleted": deleted}
