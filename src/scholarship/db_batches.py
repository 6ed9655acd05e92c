"""Database helpers for the `batches` table.

This module provides:
- BatchStatus: the derived window states
- Batch CRUD operations returning plain dicts
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional, List

from sqlalchemy import Date, DateTime, Integer, bindparam, text

from scholarship.db import engine

logger = logging.getLogger(__name__)


class BatchStatus:
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.NOT_STARTED, cls.IN_PROGRESS, cls.ENDED]

    @classmethod
    def is_valid(cls, status: str) -> bool:
        return status in cls.all()


_COLUMNS = "id, name, type, start_date, end_date, status, description, created_at, updated_at"

_COLUMN_TYPES = {
    "id": Integer,
    "start_date": Date,
    "end_date": Date,
    "created_at": DateTime(timezone=True),
    "updated_at": DateTime(timezone=True),
}

_DATE_PARAMS = (
    bindparam("start_date", type_=Date),
    bindparam("end_date", type_=Date),
)


def get_batch_by_id(batch_id: int) -> Optional[dict]:
    """Get batch by ID."""
    with engine.connect() as conn:
        row = conn.execute(
            text(f"SELECT {_COLUMNS} FROM batches WHERE id = :batch_id").columns(**_COLUMN_TYPES),
            {"batch_id": batch_id},
        ).mappings().first()
    return dict(row) if row else None


def list_batches(status: Optional[str] = None) -> List[dict]:
    """List batches newest first, optionally restricted to one status."""
    where = "WHERE status = :status" if status else ""
    with engine.connect() as conn:
        result = conn.execute(
            text(f"""
                SELECT {_COLUMNS}
                FROM batches
                {where}
                ORDER BY created_at DESC, id DESC
            """).columns(**_COLUMN_TYPES),
            {"status": status} if status else {},
        )
        return [dict(row) for row in result.mappings()]


def create_batch(
    name: str,
    type: str,
    start_date: date,
    end_date: date,
    status: str,
    description: Optional[str] = None,
) -> dict:
    """Create a new batch with an already derived status."""
    with engine.begin() as conn:
        batch_id = conn.execute(
            text("""
                INSERT INTO batches (name, type, start_date, end_date, status, description)
                VALUES (:name, :type, :start_date, :end_date, :status, :description)
                RETURNING id
            """).bindparams(*_DATE_PARAMS),
            {
                "name": name,
                "type": type,
                "start_date": start_date,
                "end_date": end_date,
                "status": status,
                "description": description,
            },
        ).scalar_one()

    logger.info(f"db_batches: created batch id={batch_id}, name={name}, status={status}")
    return get_batch_by_id(batch_id)


def update_batch(
    batch_id: int,
    name: str,
    type: str,
    start_date: date,
    end_date: date,
    status: str,
    description: Optional[str],
) -> Optional[dict]:
    """Overwrite all editable fields of a batch. Returns None if it does not exist."""
    with engine.begin() as conn:
        result = conn.execute(
            text("""
                UPDATE batches
                SET name = :name,
                    type = :type,
                    start_date = :start_date,
                    end_date = :end_date,
                    status = :status,
                    description = :description,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = :batch_id
            """).bindparams(*_DATE_PARAMS),
            {
                "batch_id": batch_id,
                "name": name,
                "type": type,
                "start_date": start_date,
                "end_date": end_date,
                "status": status,
                "description": description,
            },
        )
        if result.rowcount == 0:
            return None
    return get_batch_by_id(batch_id)


def set_batch_status(batch_id: int, status: str) -> bool:
    """Store a new status. Returns False if the batch does not exist."""
    with engine.begin() as conn:
        result = conn.execute(
            text("""
                UPDATE batches
                SET status = :status, updated_at = CURRENT_TIMESTAMP
                WHERE id = :batch_id
            """),
            {"batch_id": batch_id, "status": status},
        )
        return result.rowcount > 0


def count_batch_applications(batch_id: int) -> int:
    with engine.connect() as conn:
        return conn.execute(
            text("SELECT COUNT(*) FROM applications WHERE batch_id = :batch_id"),
            {"batch_id": batch_id},
        ).scalar_one()


def count_batches(status: Optional[str] = None) -> int:
    where = "WHERE status = :status" if status else ""
    with engine.connect() as conn:
        return conn.execute(
            text(f"SELECT COUNT(*) FROM batches {where}"),
            {"status": status} if status else {},
        ).scalar_one()


def delete_batch(batch_id: int) -> bool:
    """Delete a batch by ID.

    Callers must check count_batch_applications() first; applications keep a
    foreign key to their batch.
    """
    with engine.begin() as conn:
        result = conn.execute(
            text("DELETE FROM batches WHERE id = :batch_id"),
            {"batch_id": batch_id},
        )
        return result.rowcount > 0
