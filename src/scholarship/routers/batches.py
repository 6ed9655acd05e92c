"""Batches router: public listing, admin-only mutations."""

import logging
from typing import List
from fastapi import APIRouter, HTTPException, status, Depends, Path

from scholarship.db_batches import (
    create_batch,
    get_batch_by_id,
    list_batches,
    update_batch,
    delete_batch,
    set_batch_status,
    count_batch_applications,
)
from scholarship.schemas.batches import (
    BatchCreate,
    BatchUpdate,
    BatchStatusUpdate,
    BatchResponse,
)
from scholarship.services.batch_status import classify_batch_status, refresh_batch_statuses, today
from scholarship.deps import get_current_admin

router = APIRouter(prefix="/api/batches", tags=["batches"])

logger = logging.getLogger(__name__)


def _get_batch_or_404(batch_id: int) -> dict:
    batch = get_batch_by_id(batch_id)
    if not batch:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found"
        )
    return batch


@router.get("", response_model=List[BatchResponse])
async def list_batches_endpoint():
    """List all batches, newest first. Statuses are brought up to date first."""
    refresh_batch_statuses()
    return [BatchResponse(**b) for b in list_batches()]


@router.get("/{batch_id}", response_model=BatchResponse)
async def get_batch_endpoint(batch_id: int = Path(..., description="Batch ID")):
    return BatchResponse(**_get_batch_or_404(batch_id))


@router.post("", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
async def create_batch_endpoint(
    batch_data: BatchCreate,
    current_user: dict = Depends(get_current_admin)
):
    """Create a batch. Its status is derived from today's date."""
    batch = create_batch(
        name=batch_data.name,
        type=batch_data.type,
        start_date=batch_data.start_date,
        end_date=batch_data.end_date,
        status=classify_batch_status(today(), batch_data.start_date, batch_data.end_date),
        description=batch_data.description,
    )
    logger.info(f"Admin {current_user['username']} created batch id={batch['id']}")
    return BatchResponse(**batch)


@router.put("/{batch_id}", response_model=BatchResponse)
async def update_batch_endpoint(
    batch_data: BatchUpdate,
    batch_id: int = Path(..., description="Batch ID"),
    current_user: dict = Depends(get_current_admin)
):
    """Update a batch. Omitted fields are kept; the status is recomputed."""
    batch = _get_batch_or_404(batch_id)
    changes = batch_data.model_dump(exclude_unset=True)
    merged = {**batch, **{k: v for k, v in changes.items() if v is not None or k == "description"}}

    if merged["start_date"] > merged["end_date"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date"
        )

    updated = update_batch(
        batch_id=batch_id,
        name=merged["name"],
        type=merged["type"],
        start_date=merged["start_date"],
        end_date=merged["end_date"],
        status=classify_batch_status(today(), merged["start_date"], merged["end_date"]),
        description=merged["description"],
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found"
        )
    if updated["status"] != batch["status"]:
        logger.info(f"Batch id={batch_id} status {batch['status']} -> {updated['status']} after update")
    return BatchResponse(**updated)


@router.delete("/{batch_id}")
async def delete_batch_endpoint(
    batch_id: int = Path(..., description="Batch ID"),
    current_user: dict = Depends(get_current_admin)
):
    """Delete a batch. Refused while applications reference it."""
    _get_batch_or_404(batch_id)

    application_count = count_batch_applications(batch_id)
    if application_count > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Batch has {application_count} application(s) and cannot be deleted"
        )

    if not delete_batch(batch_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found"
        )
    logger.info(f"Admin {current_user['username']} deleted batch id={batch_id}")
    return {"message": "Batch deleted"}


@router.patch("/{batch_id}/status", response_model=BatchResponse)
async def set_batch_status_endpoint(
    status_data: BatchStatusUpdate,
    batch_id: int = Path(..., description="Batch ID"),
    current_user: dict = Depends(get_current_admin)
):
    """Override a batch's status by hand.

    The next status refresh recomputes it from the dates again.
    """
    _get_batch_or_404(batch_id)
    set_batch_status(batch_id, status_data.status)
    logger.info(f"Admin {current_user['username']} set batch id={batch_id} status to {status_data.status}")
    return BatchResponse(**get_batch_by_id(batch_id))
