"""Student portal router: open batches and the student's own applications."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, UploadFile, status
from pydantic import TypeAdapter, ValidationError

from scholarship.db_applications import (
    list_user_applications,
    update_application_items,
    delete_application,
)
from scholarship.db_batches import BatchStatus, list_batches
from scholarship.schemas.applications import (
    ApplicationItemsUpdate,
    ApplicationResponse,
    ScholarshipItem,
    StudentApplicationResponse,
)
from scholarship.schemas.batches import StudentBatchResponse
from scholarship.services.applications import (
    check_can_submit,
    get_owned_pending_application,
    submit_application,
    with_total_score,
)
from scholarship.services.batch_status import refresh_batch_statuses
from scholarship.services.uploads import UploadRejected, remove_uploaded_files, save_uploads
from scholarship.deps import get_current_active_user

router = APIRouter(prefix="/api/student", tags=["student"])

logger = logging.getLogger(__name__)

_items_adapter = TypeAdapter(List[ScholarshipItem])


def term_of(start: date) -> str:
    """Spring for windows starting January to June, autumn otherwise."""
    return "spring" if start.month <= 6 else "autumn"


def _parse_items(raw: Optional[str]) -> list:
    """Decode the `scholarship_items` form field (a JSON array)."""
    if not raw:
        return []
    try:
        items = _items_adapter.validate_json(raw)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"scholarship_items must be a JSON array of items: {e.errors()[0]['msg']}"
        ) from e
    return [item.model_dump() for item in items]


@router.get("/batches", response_model=List[StudentBatchResponse])
async def list_open_batches_endpoint():
    """Batches currently accepting applications."""
    refresh_batch_statuses()
    return [
        StudentBatchResponse(
            id=b["id"],
            year=str(b["start_date"].year),
            term=term_of(b["start_date"]),
            name=b["name"],
            type=b["type"],
            deadline=b["end_date"],
        )
        for b in list_batches(status=BatchStatus.IN_PROGRESS)
    ]


@router.get("/applications", response_model=List[StudentApplicationResponse])
async def list_student_applications_endpoint(
    current_user: dict = Depends(get_current_active_user)
):
    """The student's applications with their computed total score."""
    result = []
    for application in list_user_applications(current_user["id"]):
        app = with_total_score(application)
        batch = app["batch"]
        result.append(
            StudentApplicationResponse(
                id=app["id"],
                batch_id=app["batch_id"],
                year=str(batch["start_date"].year) if batch else "unknown",
                term=term_of(batch["start_date"]) if batch else "unknown",
                submitted_on=app["created_at"].date(),
                name=batch["name"] if batch else "unknown batch",
                type=batch["type"] if batch else "unknown type",
                total_score=app["total_score"],
                status=app["status"],
                editable=app["editable"],
                review_comment=app["review_comment"],
                scholarship_items=app["scholarship_items"],
                file_paths=app["file_paths"],
            )
        )
    return result


@router.post(
    "/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_student_application_endpoint(
    batch_id: int = Form(...),
    scholarship_items: Optional[str] = Form(None, description="JSON array of line-items"),
    files: Optional[List[UploadFile]] = File(None),
    current_user: dict = Depends(get_current_active_user),
):
    """Submit an application with supporting documents (multipart form)."""
    items = _parse_items(scholarship_items)

    # Reject before touching the disk
    check_can_submit(current_user["id"], batch_id)

    try:
        file_paths = await save_uploads(current_user["id"], files or [])
    except UploadRejected as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    try:
        application = submit_application(
            user_id=current_user["id"],
            batch_id=batch_id,
            scholarship_items=items,
            file_paths=file_paths,
        )
    except HTTPException:
        remove_uploaded_files(file_paths)
        raise
    return ApplicationResponse(**with_total_score(application))


@router.put("/applications/{application_id}", response_model=ApplicationResponse)
async def update_student_application_endpoint(
    items_data: ApplicationItemsUpdate,
    application_id: int = Path(..., description="Application ID"),
    current_user: dict = Depends(get_current_active_user),
):
    """Replace the line-items of a pending application."""
    get_owned_pending_application(application_id, current_user["id"], "edited")
    application = update_application_items(
        application_id,
        [item.model_dump() for item in items_data.scholarship_items],
    )
    if not application:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found"
        )
    logger.info(f"Student user_id={current_user['id']} updated application id={application_id}")
    return ApplicationResponse(**with_total_score(application))


@router.delete("/applications/{application_id}")
async def withdraw_student_application_endpoint(
    application_id: int = Path(..., description="Application ID"),
    current_user: dict = Depends(get_current_active_user),
):
    """Withdraw a pending application."""
    application = get_owned_pending_application(application_id, current_user["id"], "withdrawn")
    delete_application(application_id)
    remove_uploaded_files(application["file_paths"])
    logger.info(f"Student user_id={current_user['id']} withdrew application id={application_id}")
    return {"success": True, "message": "Application withdrawn"}
