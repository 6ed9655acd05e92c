"""Submission and ownership rules for applications.

These raise HTTPException directly so the JSON and the multipart submit
endpoints answer with the same responses.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError

from scholarship.db_applications import (
    ApplicationStatus,
    create_application,
    get_application_by_id,
    get_user_application_for_batch,
)
from scholarship.db_batches import BatchStatus, get_batch_by_id
from scholarship.services.scoring import compute_total_score

logger = logging.getLogger(__name__)


def check_can_submit(user_id: int, batch_id: int) -> dict:
    """Ensure the batch exists, is open, and the user has not applied yet.

    The stored batch status is used so that a manual override by an admin
    (PATCH /api/batches/{id}/status) opens or closes the window.

    Returns:
        The batch dict

    Raises:
        HTTPException 404 if the batch does not exist
        HTTPException 400 if the batch is not in progress or already applied for
    """
    batch = get_batch_by_id(batch_id)
    if not batch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Batch {batch_id} not found",
        )
    if batch["status"] != BatchStatus.IN_PROGRESS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This batch is not accepting applications",
        )
    if get_user_application_for_batch(user_id, batch_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You have already applied to this batch",
        )
    return batch


def submit_application(
    user_id: int,
    batch_id: int,
    scholarship_items: list,
    file_paths: Optional[List[str]] = None,
) -> dict:
    """Run the submission checks and create a pending application."""
    check_can_submit(user_id, batch_id)
    try:
        application = create_application(
            user_id=user_id,
            batch_id=batch_id,
            scholarship_items=scholarship_items,
            file_paths=file_paths,
        )
    except IntegrityError as e:
        # Concurrent duplicate submission hit uq_applications_user_batch
        logger.warning(f"submit_application: integrity error for user_id={user_id}, batch_id={batch_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You have already applied to this batch",
        ) from e
    logger.info(
        f"Application submitted: id={application['id']}, user_id={user_id}, batch_id={batch_id}, "
        f"total_score={compute_total_score(scholarship_items)}, files={len(file_paths or [])}"
    )
    return application


def get_owned_pending_application(application_id: int, user_id: int, action: str) -> dict:
    """Load an application its owner wants to change.

    Raises:
        HTTPException 404 if it does not exist or belongs to someone else
        HTTPException 400 if it has already been reviewed
    """
    application = get_application_by_id(application_id)
    if not application or application["user_id"] != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    if application["status"] != ApplicationStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only pending applications can be {action}",
        )
    return application


def with_total_score(application: dict) -> dict:
    """Copy of an application dict with `total_score` and `editable` filled in."""
    result = dict(application)
    result["total_score"] = compute_total_score(application.get("scholarship_items"))
    result["editable"] = application.get("status") == ApplicationStatus.PENDING
    return result
