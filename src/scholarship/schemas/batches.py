"""Pydantic schemas for batches (application windows)."""

from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator, model_validator

from scholarship.db_batches import BatchStatus


class BatchBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Batch name")
    type: str = Field(..., min_length=1, max_length=100, description="Scholarship type")
    start_date: date = Field(..., description="First day applications are accepted")
    end_date: date = Field(..., description="Last day applications are accepted")
    description: Optional[str] = None


class BatchCreate(BatchBase):
    @model_validator(mode="after")
    def validate_dates(self) -> "BatchCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class BatchUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None


class BatchStatusUpdate(BaseModel):
    status: str = Field(..., description="not_started, in_progress or ended")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if not BatchStatus.is_valid(v):
            raise ValueError(f"status must be one of: {', '.join(BatchStatus.all())}")
        return v


class BatchResponse(BatchBase):
    id: int
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BatchSummary(BaseModel):
    """Batch fields embedded in application responses."""
    id: int
    name: str
    type: str
    start_date: date
    end_date: date
    status: str


class StudentBatchResponse(BaseModel):
    """Open batch as shown on the student portal."""
    id: int
    year: str
    term: str = Field(..., description="spring (starts Jan-Jun) or autumn")
    name: str
    type: str
    deadline: date
    status: str = "open"
