"""QR join token issuance, validation and consumption.

A join token has two presentations:

* the full token ``<random>.<auth>``, where ``random`` is 16 random bytes in hex
  and ``auth`` is SHA-256 over ``"{job_id}:{random}:{secret}"``; this is what
  the QR image encodes;
* a 6-digit numeric short code for manual entry.

Both resolve to the same stored row. Tokens live for 15 minutes and can be
consumed once; consuming one binds exactly one helper to the job.
"""

import hashlib
import hmac
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID, uuid4

import structlog
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt

from app.core.state_machine import validate_transition
from app.core.token_store import (
    AssignmentRecord,
    DuplicateTokenError,
    TokenRecord,
    TokenSnapshot,
    TokenStore,
)
from app.db.types import utcnow
from app.models.job import JobStatus
from app.schemas.qr import IssuedToken, TokenCheckResult

logger = structlog.get_logger(__name__)

TOKEN_DELIMITER = "."
RANDOM_BYTES = 16
SHORT_CODE_MIN = 100000
SHORT_CODE_MAX = 999999
DEFAULT_TTL = timedelta(minutes=15)

_SHORT_CODE_RE = re.compile(r"^\d{6}$")
_TOKEN_RE = re.compile(r"^[0-9a-f]{32}\.[0-9a-f]{64}$")

# Failure reasons, in the order they are checked.
REASON_INVALID = "Invalid token"
REASON_EXPIRED = "Token expired"
REASON_USED = "Token already used"
REASON_ASSIGNED = "Job already has a Helper"
REASON_UNAVAILABLE = "Job is not available"


class QRTokenConfigError(RuntimeError):
    """The token manager was constructed without usable configuration."""


class TokenGenerationError(RuntimeError):
    """No collision-free token could be generated within the allowed attempts."""


@dataclass(frozen=True)
class QRTokenConfig:
    secret: str
    ttl: timedelta = DEFAULT_TTL
    max_short_code_attempts: int = 10

    @classmethod
    def from_settings(cls, settings) -> "QRTokenConfig":
        return cls(
            secret=settings.QR_TOKEN_SECRET,
            ttl=timedelta(minutes=settings.QR_TOKEN_TTL_MINUTES),
            max_short_code_attempts=settings.QR_SHORT_CODE_MAX_ATTEMPTS,
        )


def is_short_code(identifier: str) -> bool:
    return bool(_SHORT_CODE_RE.match(identifier))


def is_full_token(identifier: str) -> bool:
    return bool(_TOKEN_RE.match(identifier))


def generate_short_code() -> str:
    """Uniform sample from [100000, 999999]."""
    return str(SHORT_CODE_MIN + secrets.randbelow(SHORT_CODE_MAX - SHORT_CODE_MIN + 1))


class QRTokenManager:
    """Mints, checks and consumes join tokens against a ``TokenStore``."""

    def __init__(
        self,
        store: TokenStore,
        config: QRTokenConfig,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not config.secret:
            raise QRTokenConfigError("QR_TOKEN_SECRET is not configured")
        if config.max_short_code_attempts < 1:
            raise QRTokenConfigError("max_short_code_attempts must be at least 1")
        self.store = store
        self.config = config
        self._clock = clock

    def _auth_code(self, job_id: UUID, random_part: str) -> str:
        payload = f"{job_id}:{random_part}:{self.config.secret}"
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def verify_signature(self, job_id: UUID, token: str) -> bool:
        """Check that ``token`` was minted by this server for ``job_id``."""
        if not is_full_token(token):
            return False
        random_part, auth_code = token.split(TOKEN_DELIMITER, 1)
        return hmac.compare_digest(auth_code, self._auth_code(job_id, random_part))

    async def issue_token(self, job_id: UUID) -> IssuedToken:
        """
        Create and persist a new join token for an open job.

        The caller is responsible for checking the job exists and is open.
        Short-code collisions are retried with fresh material.

        Raises:
            TokenGenerationError: If every attempt collided
        """
        def log_collision(retry_state) -> None:
            logger.warning(
                "QR token collision, regenerating",
                job_id=str(job_id),
                field=retry_state.outcome.exception().field,
                attempt=retry_state.attempt_number,
            )

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(DuplicateTokenError),
                stop=stop_after_attempt(self.config.max_short_code_attempts),
                before_sleep=log_collision,
            ):
                with attempt:
                    record = self._new_record(job_id)
                    await self.store.create_token(record)
        except RetryError as exc:
            raise TokenGenerationError(
                f"Could not generate a unique QR token for job {job_id} "
                f"after {self.config.max_short_code_attempts} attempts"
            ) from exc

        logger.info(
            "QR token issued",
            job_id=str(job_id),
            token_id=str(record.id),
            expires_at=record.expires_at.isoformat(),
        )
        return IssuedToken(
            token=record.token,
            short_code=record.short_code,
            expires_at=record.expires_at,
        )

    def _new_record(self, job_id: UUID) -> TokenRecord:
        random_part = secrets.token_hex(RANDOM_BYTES)
        return TokenRecord(
            id=uuid4(),
            job_id=job_id,
            token=f"{random_part}{TOKEN_DELIMITER}{self._auth_code(job_id, random_part)}",
            short_code=generate_short_code(),
            expires_at=self._clock() + self.config.ttl,
        )

    async def _lookup(self, identifier: str) -> Optional[TokenSnapshot]:
        identifier = identifier.strip()
        if is_short_code(identifier):
            return await self.store.find_by_short_code(identifier)
        if is_full_token(identifier):
            return await self.store.find_by_token(identifier)
        return None

    def _failure_reason(self, snapshot: Optional[TokenSnapshot], now: datetime) -> Optional[str]:
        if snapshot is None:
            return REASON_INVALID
        record = snapshot.record
        if not self.verify_signature(record.job_id, record.token):
            logger.warning(
                "QR token failed signature check",
                job_id=str(record.job_id),
                token_id=str(record.id),
            )
            return REASON_INVALID
        if record.expires_at <= now:
            return REASON_EXPIRED
        if record.used:
            return REASON_USED
        if snapshot.job.has_assignment:
            return REASON_ASSIGNED
        if snapshot.job.status != JobStatus.OPEN.value:
            return REASON_UNAVAILABLE
        return None

    async def check_token(self, identifier: str) -> TokenCheckResult:
        """Report whether a token or short code could be consumed right now.

        Never marks anything used.
        """
        snapshot = await self._lookup(identifier)
        reason = self._failure_reason(snapshot, self._clock())
        if reason is not None:
            return TokenCheckResult(valid=False, reason=reason)
        return TokenCheckResult(valid=True, job_id=snapshot.record.job_id)

    async def consume_token(self, identifier: str, helper_id: UUID) -> Optional[AssignmentRecord]:
        """
        Redeem a token or short code, assigning ``helper_id`` to its job.

        Validity is re-derived here rather than trusted from an earlier
        ``check_token``. The write itself is delegated to the store as one
        atomic unit, so of any number of concurrent consumers for the same job
        at most one gets an assignment back.

        Returns:
            The new assignment, or None if the join could not happen
        """
        snapshot = await self._lookup(identifier)
        now = self._clock()
        reason = self._failure_reason(snapshot, now)
        if reason is not None:
            logger.info("QR token rejected", reason=reason, helper_id=str(helper_id))
            return None

        record = snapshot.record
        is_valid, error = validate_transition(snapshot.job.status, JobStatus.ACCEPTED)
        if not is_valid:
            logger.info("QR token rejected", reason=error, job_id=str(record.job_id))
            return None

        assignment = await self.store.consume(
            token_id=record.id,
            job_id=record.job_id,
            helper_id=helper_id,
            from_status=snapshot.job.status,
            to_status=JobStatus.ACCEPTED.value,
            now=now,
        )
        if assignment is None:
            logger.info(
                "QR token lost consumption race",
                job_id=str(record.job_id),
                token_id=str(record.id),
                helper_id=str(helper_id),
            )
            return None

        logger.info(
            "QR token consumed",
            job_id=str(record.job_id),
            token_id=str(record.id),
            helper_id=str(helper_id),
            assignment_id=str(assignment.id),
        )
        return assignment

    async def cleanup_expired(self) -> int:
        """Delete expired tokens. Housekeeping only; expiry is always re-checked live."""
        deleted = await self.store.delete_expired(self._clock())
        logger.info("Expired QR tokens deleted", count=deleted)
        return deleted
