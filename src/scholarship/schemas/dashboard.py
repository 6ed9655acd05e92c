"""Pydantic schemas for the admin dashboard."""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_applications: int
    pending_applications: int
    approved_applications: int
    rejected_applications: int
    total_batches: int
    active_batches: int
    total_users: int


class RecentApplication(BaseModel):
    id: int
    applicant_name: str
    batch_name: str
    batch_type: str
    total_score: float
    status: str
    created_at: datetime
    reviewed_at: Optional[datetime] = None
