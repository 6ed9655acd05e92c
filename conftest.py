"""Shared pytest setup: a throwaway SQLite database and upload directory.

Settings are read at import time, so the environment is prepared before
anything from `scholarship` is imported.
"""

import os
import shutil
import tempfile
from datetime import date, timedelta

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="scholarship-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-bytes"
os.environ["BOOTSTRAP_ENABLED"] = "false"
os.environ["ENABLE_RUNTIME_SCHEMA_CREATION"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import text  # noqa: E402

from scholarship.db import Base, engine  # noqa: E402
from scholarship import models  # noqa: E402,F401
from scholarship.main import app  # noqa: E402
from scholarship.core.security import create_access_token, get_password_hash  # noqa: E402
from scholarship.db_users import UserRole, create_user  # noqa: E402
from scholarship.db_batches import create_batch  # noqa: E402
from scholarship.services.batch_status import classify_batch_status, today  # noqa: E402

Base.metadata.create_all(bind=engine)

PASSWORD = "secret123"
_PASSWORD_HASH = get_password_hash(PASSWORD)


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    shutil.rmtree(_TMP_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def clean_database():
    """Every test starts with empty tables and no dependency overrides."""
    with engine.begin() as conn:
        conn.execute(text("DELETE FROM applications"))
        conn.execute(text("DELETE FROM batches"))
        conn.execute(text("DELETE FROM users"))
    upload_dir = os.environ["UPLOAD_DIR"]
    if os.path.isdir(upload_dir):
        for entry in os.listdir(upload_dir):
            shutil.rmtree(os.path.join(upload_dir, entry), ignore_errors=True)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def make_user(username: str, role: str = UserRole.STUDENT, **fields) -> dict:
    return create_user(
        username=username,
        hashed_password=_PASSWORD_HASH,
        email=fields.pop("email", f"{username}@example.com"),
        role=role,
        **fields,
    )


def auth_headers(user: dict) -> dict:
    token = create_access_token(
        data={"sub": user["username"], "user_id": user["id"], "role": user["role"]}
    )
    return {"Authorization": f"Bearer {token}"}


def make_batch(name: str = "2026 Spring Merit", offset_start: int = -30, offset_end: int = 30, **fields) -> dict:
    """Batch whose window is given in days relative to today (open by default)."""
    start = today() + timedelta(days=offset_start)
    end = today() + timedelta(days=offset_end)
    return create_batch(
        name=name,
        type=fields.pop("type", "merit"),
        start_date=start,
        end_date=end,
        status=fields.pop("status", classify_batch_status(today(), start, end)),
        description=fields.pop("description", None),
    )


@pytest.fixture
def admin() -> dict:
    return make_user("admin", role=UserRole.ADMIN, name="Administrator")


@pytest.fixture
def admin_headers(admin) -> dict:
    return auth_headers(admin)


@pytest.fixture
def student() -> dict:
    return make_user("alice", name="Alice Chen", student_id="20260001", department="CS", grade="2024")


@pytest.fixture
def student_headers(student) -> dict:
    return auth_headers(student)


@pytest.fixture
def open_batch() -> dict:
    return make_batch()


@pytest.fixture
def fixed_today(monkeypatch):
    """Pin the calendar date used for batch status to 2026-03-15."""
    pinned = date(2026, 3, 15)
    monkeypatch.setattr("scholarship.services.batch_status.today", lambda: pinned)
    monkeypatch.setattr("scholarship.routers.batches.today", lambda: pinned)
    return pinned
