"""Job model."""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class JobStatus(PyEnum):
    """Job status enumeration."""

    OPEN = "open"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ContentType(PyEnum):
    """Kind of content the requester wants captured."""

    PHOTOS = "photos"
    VIDEOS = "videos"
    BOTH = "both"


class PriceTier(PyEnum):
    """Price tier enumeration."""

    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


class Job(Base):
    """Job model for a content-capture request."""

    __tablename__ = "jobs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    requester_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(200), nullable=False)
    event_time = Column(UTCDateTime(), nullable=False)
    content_type = Column(String(20), nullable=False, default=ContentType.PHOTOS.value)
    notes = Column(Text, nullable=True)
    price_tier = Column(String(20), nullable=False, default=PriceTier.BASIC.value)
    status = Column(String(50), default=JobStatus.OPEN.value, nullable=False, index=True)
    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False)
    submitted_at = Column(UTCDateTime(), nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)

    # Relationships
    requester = relationship("User", backref="requested_jobs")
    assignment = relationship(
        "Assignment",
        back_populates="job",
        uselist=False,
        cascade="all, delete-orphan",
    )
    qr_tokens = relationship(
        "QRToken",
        back_populates="job",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, status={self.status}, requester_id={self.requester_id})>"
