"""
Bootstrap application data: database tables and the admin account.

Both steps are idempotent and disabled by default:
- ENABLE_RUNTIME_SCHEMA_CREATION=true creates missing tables (dev/test; use Alembic elsewhere)
- BOOTSTRAP_ENABLED=true creates the admin account from ADMIN_USERNAME / ADMIN_PASSWORD / ADMIN_EMAIL

Bootstrap runs automatically on application startup or can be run manually.
"""

import os
import logging
from typing import Optional

from sqlalchemy import text

from scholarship.db import Base, engine
from scholarship.db_users import UserRole, get_user_by_username, create_user as create_user_db
from scholarship.core.security import get_password_hash
from scholarship.settings import env_flag

logger = logging.getLogger(__name__)


def ensure_schema() -> bool:
    """Create all tables if ENABLE_RUNTIME_SCHEMA_CREATION is on."""
    if not env_flag("ENABLE_RUNTIME_SCHEMA_CREATION"):
        logger.debug("Runtime schema creation disabled (ENABLE_RUNTIME_SCHEMA_CREATION not set)")
        return False

    # Registers the tables on Base.metadata
    from scholarship import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Runtime schema creation: tables ensured")
    return True


def ensure_admin_user() -> Optional[dict]:
    """Ensure admin user exists (idempotent).

    Only creates admin user if ADMIN_PASSWORD is set (security: no default password).
    """
    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    admin_password = os.getenv("ADMIN_PASSWORD")

    existing_user = get_user_by_username(admin_username)
    if existing_user:
        logger.info(f"Admin user '{admin_username}' already exists (id={existing_user['id']})")
        return existing_user

    if not admin_password:
        logger.warning("ADMIN_PASSWORD not set, skipping admin user creation")
        logger.warning("Set ADMIN_PASSWORD environment variable to enable admin user creation")
        return None

    try:
        admin_user = create_user_db(
            username=admin_username,
            email=os.getenv("ADMIN_EMAIL", f"{admin_username}@example.com"),
            hashed_password=get_password_hash(admin_password),
            role=UserRole.ADMIN,
            name="Administrator",
        )
        logger.info(f"Created admin user '{admin_username}' (id={admin_user['id']})")
        return admin_user
    except Exception as e:
        logger.error(f"Failed to create admin user: {e}")
        return None


def run_bootstrap_on_startup() -> None:
    """Run bootstrap on application startup (if enabled).

    Bootstrap is disabled by default (BOOTSTRAP_ENABLED=false) for security.
    Enable it explicitly in dev/test environments.
    """
    if not env_flag("BOOTSTRAP_ENABLED"):
        logger.info("Bootstrap is disabled (BOOTSTRAP_ENABLED=false or not set)")
        return

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1 FROM users LIMIT 1"))

        if ensure_admin_user():
            logger.info("Bootstrap completed on startup")
        else:
            logger.warning("Bootstrap completed without an admin user")
    except Exception as e:
        logger.warning(f"Bootstrap skipped on startup (tables may not exist yet): {e}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    ensure_schema()
    result = ensure_admin_user()
    print(f"Bootstrap result: {result}")
