"""Job schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.core.pricing import get_price_amount, get_price_display
from app.models.job import ContentType, PriceTier


class JobBase(BaseModel):
    """Base job schema."""

    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    location: str = Field(..., min_length=3, max_length=200)
    event_time: datetime
    content_type: ContentType
    notes: str | None = Field(default=None, max_length=500)
    price_tier: PriceTier


class JobCreate(JobBase):
    """Schema for creating a job."""

    pass


class AssignmentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    helper_id: UUID
    created_at: datetime


class JobResponse(BaseModel):
    """Schema for job response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    requester_id: UUID
    title: str
    description: str
    location: str
    event_time: datetime
    content_type: str
    notes: str | None
    price_tier: str
    status: str
    created_at: datetime
    updated_at: datetime
    submitted_at: datetime | None
    completed_at: datetime | None
    assignment: AssignmentSummary | None = None

    @computed_field
    @property
    def price_amount(self) -> int:
        return get_price_amount(self.price_tier)

    @computed_field
    @property
    def price_display(self) -> str:
        return get_price_display(self.price_tier)


class JobListResponse(BaseModel):
    """Schema for paginated job list response."""

    items: list[JobResponse]
    total: int
    page: int
    page_size: int
