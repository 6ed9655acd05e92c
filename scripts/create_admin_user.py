#!/usr/bin/env python3
"""Create the admin account, or reset its password if it already exists.

Usage:
    python scripts/create_admin_user.py PASSWORD [USERNAME]

USERNAME defaults to ADMIN_USERNAME or "admin". The script is idempotent:
an existing admin with the same password is left untouched.
"""

import sys
import os

# In container: PYTHONPATH=/app/src. On host: add ../src
script_dir = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.abspath(os.path.join(script_dir, '..', 'src'))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from scholarship.db_users import UserRole, get_user_by_username, create_user, update_user_password, set_user_active
from scholarship.core.security import get_password_hash, verify_password


def create_or_update_admin(password: str, username: str) -> int:
    existing_user = get_user_by_username(username)

    if existing_user:
        if existing_user["role"] != UserRole.ADMIN:
            print(f"✗ User '{username}' exists but is a {existing_user['role']}, refusing to touch it")
            return 1

        if verify_password(password, existing_user["hashed_password"]):
            print(f"✓ Admin '{username}' already exists with this password")
        else:
            update_user_password(existing_user["id"], get_password_hash(password))
            print(f"✓ Password of admin '{username}' updated")

        if not existing_user["is_active"]:
            set_user_active(existing_user["id"], True)
            print(f"✓ Admin '{username}' re-enabled")
        return 0

    admin_user = create_user(
        username=username,
        email=os.getenv("ADMIN_EMAIL", f"{username}@example.com"),
        hashed_password=get_password_hash(password),
        role=UserRole.ADMIN,
        name="Administrator",
    )
    print(f"✓ Admin '{username}' created (id={admin_user['id']})")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    admin_password = sys.argv[1]
    admin_username = sys.argv[2] if len(sys.argv) > 2 else os.getenv("ADMIN_USERNAME", "admin")
    sys.exit(create_or_update_admin(admin_password, admin_username))
