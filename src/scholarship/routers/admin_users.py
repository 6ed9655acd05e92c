"""Admin endpoints for user management (admin only)."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.exc import IntegrityError

from scholarship.deps import get_current_admin
from scholarship.db_users import (
    UserRole,
    UserStatus,
    list_users,
    count_users,
    count_active_admins,
    get_user_by_username,
    get_user_by_student_id,
    get_user_by_id,
    create_user,
    set_user_active,
    update_user_password,
    delete_user,
)
from scholarship.core.security import get_password_hash
from scholarship.schemas.admin_users import (
    AdminUserCreate,
    AdminUserResponse,
    AdminUserListResponse,
    AdminUserStatusUpdate,
    AdminPasswordReset,
)
from scholarship.services.uploads import remove_uploaded_files
from scholarship.db_applications import list_user_applications

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin-users"])


def _get_user_or_404(user_id: int) -> dict:
    user = get_user_by_id(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found"
        )
    return user


def _guard_last_admin(user: dict, action: str) -> None:
    """Refuse to remove the last enabled admin account."""
    if user["role"] == UserRole.ADMIN and user["is_active"] and count_active_admins() <= 1:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} the last active admin"
        )


@router.get(
    "/users",
    response_model=AdminUserListResponse,
    summary="List all users",
    description="Get paginated list of users with optional search and role filter.",
)
async def list_users_endpoint(
    limit: int = Query(200, ge=1, le=500, description="Maximum number of users to return"),
    offset: int = Query(0, ge=0, description="Number of users to skip"),
    q: Optional[str] = Query(None, description="Search by username, name, email or student ID"),
    role: Optional[str] = Query(None, description="student or admin"),
    _: dict = Depends(get_current_admin),
) -> AdminUserListResponse:
    users_data = list_users(limit=limit, offset=offset, q=q, role=role)
    total = count_users(q=q, role=role)

    users = [AdminUserResponse.from_user(user) for user in users_data]

    return AdminUserListResponse(users=users, total=total)


@router.get("/users/{user_id}", response_model=AdminUserResponse)
async def get_user_endpoint(
    user_id: int = Path(..., description="User ID"),
    _: dict = Depends(get_current_admin),
) -> AdminUserResponse:
    return AdminUserResponse.from_user(_get_user_or_404(user_id))


@router.post(
    "/users",
    response_model=AdminUserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
)
async def create_user_endpoint(
    user_data: AdminUserCreate,
    current_admin: dict = Depends(get_current_admin),
) -> AdminUserResponse:
    """Create a new user.

    Validates username and student ID uniqueness, normalizes input data,
    and hashes the password before storing.
    """
    username = user_data.username.strip()
    email = user_data.email.lower().strip() if user_data.email else None

    if get_user_by_username(username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Username '{username}' is already taken"
        )

    if user_data.student_id and get_user_by_student_id(user_data.student_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Student ID '{user_data.student_id}' is already registered"
        )

    try:
        user = create_user(
            username=username,
            hashed_password=get_password_hash(user_data.password),
            email=email,
            role=user_data.role,
            name=user_data.name,
            student_id=user_data.student_id,
            department=user_data.department,
            grade=user_data.grade,
            major=user_data.major,
            is_active=user_data.is_active,
        )
    except IntegrityError as e:
        logger.warning(f"Admin create user: integrity error for username={username}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or student ID is already registered"
        ) from e
    logger.info(
        f"Admin {current_admin['username']} created user: id={user['id']}, "
        f"username={username}, role={user_data.role}"
    )
    return AdminUserResponse.from_user(user)


@router.patch("/users/{user_id}/status", response_model=AdminUserResponse)
async def update_user_status_endpoint(
    status_data: AdminUserStatusUpdate,
    user_id: int = Path(..., description="User ID"),
    current_admin: dict = Depends(get_current_admin),
) -> AdminUserResponse:
    """Enable or disable an account."""
    user = _get_user_or_404(user_id)
    is_active = status_data.status == UserStatus.ACTIVE

    if not is_active:
        _guard_last_admin(user, "disable")

    updated = set_user_active(user_id, is_active)
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found"
        )
    logger.info(f"Admin {current_admin['username']} set user id={user_id} status to {status_data.status}")
    return AdminUserResponse.from_user(updated)


@router.post("/users/{user_id}/reset-password")
async def reset_user_password_endpoint(
    reset_data: AdminPasswordReset,
    user_id: int = Path(..., description="User ID"),
    current_admin: dict = Depends(get_current_admin),
) -> dict:
    _get_user_or_404(user_id)
    if not update_user_password(user_id, get_password_hash(reset_data.new_password)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found"
        )
    logger.info(f"Admin {current_admin['username']} reset password of user id={user_id}")
    return {"message": "Password has been reset"}


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a user",
    description="Delete a user and their applications. Cannot delete the last active admin.",
)
async def delete_user_endpoint(
    user_id: int = Path(..., description="User ID to delete"),
    current_admin: dict = Depends(get_current_admin),
) -> dict:
    user = _get_user_or_404(user_id)
    _guard_last_admin(user, "delete")

    file_paths = [p for a in list_user_applications(user_id) for p in a["file_paths"]]

    if not delete_user(user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found"
        )
    remove_uploaded_files(file_paths)

    logger.info(f"Admin {current_admin['username']} deleted user: id={user_id}, username={user['username']}")
    return {"message": "User deleted"}
