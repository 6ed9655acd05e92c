"""Applications router: submission by students, review by admins."""

import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException, status, Depends, Path, Query

from scholarship.db_applications import (
    get_application_by_id,
    list_user_applications,
    list_applications,
    review_application,
    delete_application,
)
from scholarship.db_users import UserRole
from scholarship.schemas.applications import (
    ApplicationCreate,
    ApplicationReview,
    ApplicationResponse,
    ApplicationDeleteResponse,
)
from scholarship.services.applications import submit_application, with_total_score
from scholarship.services.uploads import remove_uploaded_files
from scholarship.deps import get_current_active_user, get_current_admin

router = APIRouter(prefix="/api/applications", tags=["applications"])

logger = logging.getLogger(__name__)

# Query value the admin UI sends for "no filter"
ALL = "all"


def _to_response(application: dict) -> ApplicationResponse:
    return ApplicationResponse(**with_total_score(application))


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application_endpoint(
    application_data: ApplicationCreate,
    current_user: dict = Depends(get_current_active_user)
):
    """Submit an application (JSON body, no attachments)."""
    application = submit_application(
        user_id=current_user["id"],
        batch_id=application_data.batch_id,
        scholarship_items=[item.model_dump() for item in application_data.scholarship_items],
    )
    return _to_response(application)


@router.get("/my", response_model=List[ApplicationResponse])
async def list_my_applications_endpoint(
    current_user: dict = Depends(get_current_active_user)
):
    """Current user's applications, newest first."""
    return [_to_response(a) for a in list_user_applications(current_user["id"])]


@router.get("/admin", response_model=List[ApplicationResponse])
async def list_applications_admin_endpoint(
    status_filter: Optional[str] = Query(None, alias="status", description="pending, approved, rejected or all"),
    batch_id: Optional[str] = Query(None, description="Batch ID or all"),
    _: dict = Depends(get_current_admin),
):
    """All applications with optional status / batch filters."""
    status_value = None if status_filter in (None, "", ALL) else status_filter

    batch_value = None
    if batch_id not in (None, "", ALL):
        try:
            batch_value = int(batch_id)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid batch_id: {batch_id}"
            )

    return [_to_response(a) for a in list_applications(status=status_value, batch_id=batch_value)]


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application_endpoint(
    application_id: int = Path(..., description="Application ID"),
    current_user: dict = Depends(get_current_active_user)
):
    """Application details. Visible to its owner and to admins."""
    application = get_application_by_id(application_id)
    is_admin = current_user["role"] == UserRole.ADMIN
    if not application or (not is_admin and application["user_id"] != current_user["id"]):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found"
        )
    return _to_response(application)


@router.patch("/{application_id}/review", response_model=ApplicationResponse)
async def review_application_endpoint(
    review_data: ApplicationReview,
    application_id: int = Path(..., description="Application ID"),
    current_user: dict = Depends(get_current_admin)
):
    """Approve or reject an application."""
    application = review_application(
        application_id=application_id,
        status=review_data.status,
        review_comment=review_data.review_comment,
        reviewed_by=current_user["id"],
    )
    if not application:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found"
        )
    logger.info(
        f"Admin {current_user['username']} reviewed application id={application_id}: {review_data.status}"
    )
    return _to_response(application)


@router.delete("/{application_id}", response_model=ApplicationDeleteResponse)
async def delete_application_endpoint(
    application_id: int = Path(..., description="Application ID"),
    current_user: dict = Depends(get_current_admin)
):
    """Delete any application together with its uploaded files."""
    application = get_application_by_id(application_id)
    if not application:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found"
        )

    delete_application(application_id)
    remove_uploaded_files(application["file_paths"])

    deleted = {
        "id": application["id"],
        "user_id": application["user_id"],
        "batch_id": application["batch_id"],
    }
    logger.info(f"Admin {current_user['username']} deleted application {deleted}")
    return ApplicationDeleteResponse(
        success=True,
        message="Application deleted",
        deleted_application=deleted,
    )
