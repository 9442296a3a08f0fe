"""Assignment model."""

import uuid

from sqlalchemy import Column, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class Assignment(Base):
    """Binding of one helper to one job.

    The unique constraint on ``job_id`` is what turns two helpers racing for the
    same job into an ``IntegrityError`` instead of a double booking.
    """

    __tablename__ = "assignments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    job_id = Column(
        UUID(as_uuid=True),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    helper_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="assignment")
    helper = relationship("User", backref="assignments")

    def __repr__(self) -> str:
        return f"<Assignment(id={self.id}, job_id={self.job_id}, helper_id={self.helper_id})>"
