"""Database helpers for the `applications` table.

Applications are returned as dicts with their JSON documents decoded and the
owning batch and applicant attached:

    {
        "id": 1, "user_id": 2, "batch_id": 3, "status": "pending",
        "scholarship_items": [...], "file_paths": [...],
        "review_comment": None, "reviewed_by": None, "reviewed_at": None,
        "created_at": ..., "updated_at": ...,
        "batch": {"id": 3, "name": ..., "type": ..., ...} or None,
        "applicant": {"id": 2, "username": ..., "name": ..., "student_id": ...},
    }
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, List

from sqlalchemy import Date, DateTime, Integer, text

from scholarship.db import engine

logger = logging.getLogger(__name__)


class ApplicationStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.APPROVED, cls.REJECTED]

    @classmethod
    def is_valid(cls, status: str) -> bool:
        return status in cls.all()


_SELECT = """
    SELECT a.id, a.user_id, a.batch_id, a.status, a.scholarship_items, a.file_paths,
           a.review_comment, a.reviewed_by, a.reviewed_at, a.created_at, a.updated_at,
           b.name AS batch_name, b.type AS batch_type, b.start_date AS batch_start_date,
           b.end_date AS batch_end_date, b.status AS batch_status,
           u.username AS applicant_username, u.name AS applicant_name,
           u.student_id AS applicant_student_id
    FROM applications a
    LEFT JOIN batches b ON b.id = a.batch_id
    LEFT JOIN users u ON u.id = a.user_id
"""

_COLUMN_TYPES = {
    "id": Integer,
    "user_id": Integer,
    "batch_id": Integer,
    "reviewed_by": Integer,
    "reviewed_at": DateTime(timezone=True),
    "created_at": DateTime(timezone=True),
    "updated_at": DateTime(timezone=True),
    "batch_start_date": Date,
    "batch_end_date": Date,
}


def decode_json_list(raw: Any, field: str = "value") -> list:
    """Decode a JSON-array text column. Anything that is not a list becomes []."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"db_applications: could not decode {field} as JSON: {raw!r}")
        return []
    return value if isinstance(value, list) else []


def _encode_json(value: Optional[list]) -> str:
    return json.dumps(value or [], ensure_ascii=False)


def _row_to_application(row) -> dict:
    data = dict(row)
    batch = None
    if data.get("batch_name") is not None:
        batch = {
            "id": data["batch_id"],
            "name": data["batch_name"],
            "type": data["batch_type"],
            "start_date": data["batch_start_date"],
            "end_date": data["batch_end_date"],
            "status": data["batch_status"],
        }
    applicant = None
    if data.get("applicant_username") is not None:
        applicant = {
            "id": data["user_id"],
            "username": data["applicant_username"],
            "name": data["applicant_name"],
            "student_id": data["applicant_student_id"],
        }
    return {
        "id": data["id"],
        "user_id": data["user_id"],
        "batch_id": data["batch_id"],
        "status": data["status"],
        "scholarship_items": decode_json_list(data["scholarship_items"], "scholarship_items"),
        "file_paths": decode_json_list(data["file_paths"], "file_paths"),
        "review_comment": data["review_comment"],
        "reviewed_by": data["reviewed_by"],
        "reviewed_at": data["reviewed_at"],
        "created_at": data["created_at"],
        "updated_at": data["updated_at"],
        "batch": batch,
        "applicant": applicant,
    }


def _fetch(where: str = "", params: Optional[dict] = None, suffix: str = "") -> List[dict]:
    with engine.connect() as conn:
        result = conn.execute(
            text(f"{_SELECT} {where} {suffix}").columns(**_COLUMN_TYPES),
            params or {},
        )
        return [_row_to_application(row) for row in result.mappings()]


def get_application_by_id(application_id: int) -> Optional[dict]:
    rows = _fetch("WHERE a.id = :application_id", {"application_id": application_id})
    return rows[0] if rows else None


def get_user_application_for_batch(user_id: int, batch_id: int) -> Optional[dict]:
    rows = _fetch(
        "WHERE a.user_id = :user_id AND a.batch_id = :batch_id",
        {"user_id": user_id, "batch_id": batch_id},
    )
    return rows[0] if rows else None


def list_user_applications(user_id: int) -> List[dict]:
    """All applications of one user, newest first."""
    return _fetch(
        "WHERE a.user_id = :user_id",
        {"user_id": user_id},
        "ORDER BY a.created_at DESC, a.id DESC",
    )


def list_applications(
    status: Optional[str] = None,
    batch_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[dict]:
    """All applications newest first, optionally filtered by status and/or batch."""
    clauses = []
    params: dict = {}
    if status:
        clauses.append("a.status = :status")
        params["status"] = status
    if batch_id is not None:
        clauses.append("a.batch_id = :batch_id")
        params["batch_id"] = batch_id
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    suffix = "ORDER BY a.created_at DESC, a.id DESC"
    if limit is not None:
        suffix += " LIMIT :limit"
        params["limit"] = limit
    return _fetch(where, params, suffix)


def count_applications_by_status() -> dict:
    """Return {status: count} for every application status (missing ones are 0)."""
    counts = {status: 0 for status in ApplicationStatus.all()}
    with engine.connect() as conn:
        result = conn.execute(text("SELECT status, COUNT(*) FROM applications GROUP BY status"))
        for status, count in result:
            counts[status] = count
    return counts


def create_application(
    user_id: int,
    batch_id: int,
    scholarship_items: list,
    file_paths: Optional[list] = None,
) -> dict:
    """Create a pending application."""
    with engine.begin() as conn:
        application_id = conn.execute(
            text("""
                INSERT INTO applications (user_id, batch_id, status, scholarship_items, file_paths)
                VALUES (:user_id, :batch_id, :status, :scholarship_items, :file_paths)
                RETURNING id
            """),
            {
                "user_id": user_id,
                "batch_id": batch_id,
                "status": ApplicationStatus.PENDING,
                "scholarship_items": _encode_json(scholarship_items),
                "file_paths": _encode_json(file_paths),
            },
        ).scalar_one()

    logger.info(
        f"db_applications: created application id={application_id}, "
        f"user_id={user_id}, batch_id={batch_id}"
    )
    return get_application_by_id(application_id)


def update_application_items(application_id: int, scholarship_items: list) -> Optional[dict]:
    """Replace the line-items of an application."""
    with engine.begin() as conn:
        result = conn.execute(
            text("""
                UPDATE applications
                SET scholarship_items = :scholarship_items, updated_at = CURRENT_TIMESTAMP
                WHERE id = :application_id
            """),
            {
                "application_id": application_id,
                "scholarship_items": _encode_json(scholarship_items),
            },
        )
        if result.rowcount == 0:
            return None
    return get_application_by_id(application_id)


def review_application(
    application_id: int,
    status: str,
    review_comment: Optional[str],
    reviewed_by: int,
) -> Optional[dict]:
    """Record a review decision. Returns the updated application or None if missing."""
    with engine.begin() as conn:
        result = conn.execute(
            text("""
                UPDATE applications
                SET status = :status,
                    review_comment = :review_comment,
                    reviewed_by = :reviewed_by,
                    reviewed_at = CURRENT_TIMESTAMP,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = :application_id
            """),
            {
                "application_id": application_id,
                "status": status,
                "review_comment": review_comment,
                "reviewed_by": reviewed_by,
            },
        )
        if result.rowcount == 0:
            return None
    return get_application_by_id(application_id)


def delete_application(application_id: int) -> bool:
    with engine.begin() as conn:
        result = conn.execute(
            text("DELETE FROM applications WHERE id = :application_id"),
            {"application_id": application_id},
        )
        return result.rowcount > 0
