"""QR join token model."""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class QRToken(Base):
    """Single-use, time-limited credential for joining a job."""

    __tablename__ = "qr_tokens"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    job_id = Column(
        UUID(as_uuid=True),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(String(128), unique=True, nullable=False, index=True)
    short_code = Column(String(6), unique=True, nullable=False, index=True)
    expires_at = Column(UTCDateTime(), nullable=False, index=True)
    used = Column(Boolean, default=False, nullable=False)
    consumed_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    consumed_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="qr_tokens")

    def __repr__(self) -> str:
        return f"<QRToken(id={self.id}, job_id={self.job_id}, used={self.used})>"
