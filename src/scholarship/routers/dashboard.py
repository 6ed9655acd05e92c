"""Admin dashboard: headline counts and the latest submissions."""

from typing import List

from fastapi import APIRouter, Depends, Query

from scholarship.deps import get_current_admin
from scholarship.db_applications import ApplicationStatus, count_applications_by_status, list_applications
from scholarship.db_batches import BatchStatus, count_batches
from scholarship.db_users import count_users
from scholarship.schemas.dashboard import DashboardStats, RecentApplication
from scholarship.services.scoring import compute_total_score

router = APIRouter(prefix="/api/admin/dashboard", tags=["admin-dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(_: dict = Depends(get_current_admin)) -> DashboardStats:
    by_status = count_applications_by_status()
    return DashboardStats(
        total_applications=sum(by_status.values()),
        pending_applications=by_status[ApplicationStatus.PENDING],
        approved_applications=by_status[ApplicationStatus.APPROVED],
        rejected_applications=by_status[ApplicationStatus.REJECTED],
        total_batches=count_batches(),
        active_batches=count_batches(status=BatchStatus.IN_PROGRESS),
        total_users=count_users(),
    )


@router.get("/recent-applications", response_model=List[RecentApplication])
async def recent_applications(
    limit: int = Query(10, ge=1, le=100),
    _: dict = Depends(get_current_admin),
) -> List[RecentApplication]:
    result = []
    for a in list_applications(limit=limit):
        applicant = a["applicant"] or {}
        batch = a["batch"] or {}
        result.append(
            RecentApplication(
                id=a["id"],
                applicant_name=applicant.get("name") or applicant.get("username") or "unknown",
                batch_name=batch.get("name", "unknown batch"),
                batch_type=batch.get("type", "unknown type"),
                total_score=compute_total_score(a["scholarship_items"]),
                status=a["status"],
                created_at=a["created_at"],
                reviewed_at=a["reviewed_at"],
            )
        )
    return result
