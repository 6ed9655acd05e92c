"""Database helpers for the `users` table.

This module provides:
- UserRole: the two account roles
- User CRUD operations returning plain dicts

Tables are created by Alembic migrations (or `ensure_schema()` in dev/test).
"""

from __future__ import annotations

import logging
from typing import Optional, List

from sqlalchemy import Boolean, DateTime, Integer, text

from scholarship.db import engine

logger = logging.getLogger(__name__)


class UserRole:
    STUDENT = "student"
    ADMIN = "admin"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.STUDENT, cls.ADMIN]

    @classmethod
    def is_valid(cls, role: str) -> bool:
        return role in cls.all()


class UserStatus:
    """Account status as exposed to the admin UI; stored as `is_active`."""
    ACTIVE = "active"
    DISABLED = "disabled"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.ACTIVE, cls.DISABLED]


_PUBLIC_COLUMNS = """
    id, username, email, role, name, student_id, department, grade, major,
    is_active, last_login, created_at, updated_at
"""

_COLUMN_TYPES = {
    "id": Integer,
    "is_active": Boolean,
    "last_login": DateTime(timezone=True),
    "created_at": DateTime(timezone=True),
    "updated_at": DateTime(timezone=True),
}


def _select_one(where: str, params: dict, with_password: bool = False) -> Optional[dict]:
    columns = _PUBLIC_COLUMNS + (", hashed_password" if with_password else "")
    with engine.connect() as conn:
        row = conn.execute(
            text(f"SELECT {columns} FROM users WHERE {where}").columns(**_COLUMN_TYPES),
            params,
        ).mappings().first()
    return dict(row) if row else None


def get_user_by_username(username: str) -> Optional[dict]:
    """Get user by username (includes hashed_password for login checks)."""
    return _select_one("username = :username", {"username": username}, with_password=True)


def get_user_by_student_id(student_id: str) -> Optional[dict]:
    """Get user by student number (includes hashed_password)."""
    return _select_one("student_id = :student_id", {"student_id": student_id}, with_password=True)


def get_user_by_id(user_id: int) -> Optional[dict]:
    """Get user by ID."""
    return _select_one("id = :user_id", {"user_id": user_id})


def list_users(
    limit: int = 200,
    offset: int = 0,
    q: Optional[str] = None,
    role: Optional[str] = None,
) -> List[dict]:
    """List users with pagination and optional search.

    Args:
        limit: Maximum number of users to return (default: 200)
        offset: Number of users to skip (default: 0)
        q: Optional case-insensitive search over username, name, email and student number
        role: Optional role filter

    Returns:
        List of user dicts (without hashed_password)
    """
    where, params = _list_filters(q, role)
    params.update({"limit": limit, "offset": offset})
    with engine.connect() as conn:
        result = conn.execute(
            text(f"""
                SELECT {_PUBLIC_COLUMNS}
                FROM users
                {where}
                ORDER BY created_at DESC, id DESC
                LIMIT :limit OFFSET :offset
            """).columns(**_COLUMN_TYPES),
            params,
        )
        return [dict(row) for row in result.mappings()]


def count_users(q: Optional[str] = None, role: Optional[str] = None) -> int:
    """Count users matching the same filters as list_users()."""
    where, params = _list_filters(q, role)
    with engine.connect() as conn:
        return conn.execute(text(f"SELECT COUNT(*) FROM users {where}"), params).scalar_one()


def _list_filters(q: Optional[str], role: Optional[str]) -> tuple:
    clauses = []
    params: dict = {}
    if q:
        # LOWER(..) LIKE keeps the query portable (no ILIKE on SQLite)
        clauses.append(
            "(LOWER(username) LIKE :q OR LOWER(COALESCE(name, '')) LIKE :q "
            "OR LOWER(COALESCE(email, '')) LIKE :q OR LOWER(COALESCE(student_id, '')) LIKE :q)"
        )
        params["q"] = f"%{q.lower()}%"
    if role:
        clauses.append("role = :role")
        params["role"] = role
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


def count_active_admins() -> int:
    """Count enabled admin accounts."""
    with engine.connect() as conn:
        return conn.execute(
            text("SELECT COUNT(*) FROM users WHERE role = :role AND is_active = :active"),
            {"role": UserRole.ADMIN, "active": True},
        ).scalar_one()


def create_user(
    username: str,
    hashed_password: str,
    email: Optional[str] = None,
    role: str = UserRole.STUDENT,
    name: Optional[str] = None,
    student_id: Optional[str] = None,
    department: Optional[str] = None,
    grade: Optional[str] = None,
    major: Optional[str] = None,
    is_active: bool = True,
) -> dict:
    """Create a new user and return it (without hashed_password)."""
    with engine.begin() as conn:
        user_id = conn.execute(
            text("""
                INSERT INTO users (
                    username, email, hashed_password, role, name, student_id,
                    department, grade, major, is_active
                )
                VALUES (
                    :username, :email, :hashed_password, :role, :name, :student_id,
                    :department, :grade, :major, :is_active
                )
                RETURNING id
            """),
            {
                "username": username,
                "email": email,
                "hashed_password": hashed_password,
                "role": role,
                "name": name,
                "student_id": student_id,
                "department": department,
                "grade": grade,
                "major": major,
                "is_active": is_active,
            },
        ).scalar_one()

    logger.info(f"db_users: created user id={user_id}, username={username}, role={role}")
    return get_user_by_id(user_id)


def set_user_active(user_id: int, is_active: bool) -> Optional[dict]:
    """Enable or disable an account. Returns the updated user or None if missing."""
    with engine.begin() as conn:
        result = conn.execute(
            text("""
                UPDATE users
                SET is_active = :is_active, updated_at = CURRENT_TIMESTAMP
                WHERE id = :user_id
            """),
            {"user_id": user_id, "is_active": is_active},
        )
        if result.rowcount == 0:
            return None
    return get_user_by_id(user_id)


def update_user_password(user_id: int, hashed_password: str) -> bool:
    """Replace a user's password hash. Returns False if the user does not exist."""
    with engine.begin() as conn:
        result = conn.execute(
            text("""
                UPDATE users
                SET hashed_password = :hashed_password, updated_at = CURRENT_TIMESTAMP
                WHERE id = :user_id
            """),
            {"user_id": user_id, "hashed_password": hashed_password},
        )
        return result.rowcount > 0


def delete_user(user_id: int) -> bool:
    """Delete a user by ID together with the user's applications.

    Args:
        user_id: ID of the user to delete

    Returns:
        True if user was deleted, False if user was not found
    """
    with engine.begin() as conn:
        # Explicit so SQLite (no FK enforcement by default) behaves like PostgreSQL
        conn.execute(
            text("DELETE FROM applications WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
        conn.execute(
            text("UPDATE applications SET reviewed_by = NULL WHERE reviewed_by = :user_id"),
            {"user_id": user_id},
        )
        result = conn.execute(
            text("DELETE FROM users WHERE id = :user_id"),
            {"user_id": user_id},
        )
        return result.rowcount > 0


def update_user_last_login(user_id: int) -> None:
    """Stamp last_login with the current time."""
    with engine.begin() as conn:
        conn.execute(
            text("UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE id = :user_id"),
            {"user_id": user_id},
        )
