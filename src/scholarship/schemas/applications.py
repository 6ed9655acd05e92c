"""Pydantic schemas for scholarship applications."""

from typing import Any, Optional, List
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from scholarship.db_applications import ApplicationStatus
from scholarship.schemas.batches import BatchSummary


class ScholarshipItem(BaseModel):
    """One scored line-item. Unknown keys are kept as submitted."""
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    level: Optional[str] = None
    name: Optional[str] = None
    score: Any = Field(None, description="Numeric score; non-numeric values count as 0")


class ApplicationCreate(BaseModel):
    batch_id: int
    scholarship_items: List[ScholarshipItem] = Field(default_factory=list)


class ApplicationItemsUpdate(BaseModel):
    scholarship_items: List[ScholarshipItem] = Field(default_factory=list)


class ApplicationReview(BaseModel):
    status: str = Field(..., description="pending, approved or rejected")
    review_comment: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if not ApplicationStatus.is_valid(v):
            raise ValueError(f"status must be one of: {', '.join(ApplicationStatus.all())}")
        return v


class Applicant(BaseModel):
    id: int
    username: str
    name: Optional[str] = None
    student_id: Optional[str] = None


class ApplicationResponse(BaseModel):
    id: int
    user_id: int
    batch_id: int
    status: str
    scholarship_items: List[dict] = Field(default_factory=list)
    file_paths: List[str] = Field(default_factory=list)
    total_score: float
    editable: bool
    review_comment: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    batch: Optional[BatchSummary] = None
    applicant: Optional[Applicant] = None

    class Config:
        from_attributes = True


class ApplicationDeleteResponse(BaseModel):
    success: bool = True
    message: str
    deleted_application: dict


class StudentApplicationResponse(BaseModel):
    """Application as listed on the student portal."""
    id: int
    batch_id: int
    year: str
    term: str
    submitted_on: date
    name: str
    type: str
    total_score: float
    status: str
    editable: bool
    review_comment: Optional[str] = None
    scholarship_items: List[dict] = Field(default_factory=list)
    file_paths: List[str] = Field(default_factory=list)
