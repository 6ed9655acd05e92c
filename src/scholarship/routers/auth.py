"""Authentication router with JWT access and refresh tokens.

Students log in either by username or by student number; the admin console
uses its own login endpoint which only accepts admin accounts.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.exc import IntegrityError

from scholarship.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from scholarship.db_users import (
    UserRole,
    get_user_by_username,
    get_user_by_student_id,
    get_user_by_id,
    create_user,
    update_user_last_login,
)
from scholarship.schemas.auth import (
    UserCreate,
    UserResponse,
    Token,
    AuthResponse,
    LoginRequest,
    StudentLoginRequest,
    RefreshTokenRequest,
)
from scholarship.deps import get_current_active_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _issue_tokens(user: dict) -> Token:
    claims = {"sub": user["username"], "user_id": user["id"], "role": user["role"]}
    return Token(
        access_token=create_access_token(data=claims),
        refresh_token=create_refresh_token(data=claims),
        token_type="bearer",
    )


def _auth_response(user: dict) -> AuthResponse:
    tokens = _issue_tokens(user)
    return AuthResponse(**tokens.model_dump(), user=UserResponse(**user))


def _authenticate(user: Optional[dict], password: str, admin_only: bool = False) -> AuthResponse:
    """Check credentials of an already looked-up user and log them in."""
    if not user or not verify_password(password, user["hashed_password"]):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password"
        )

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive"
        )

    if admin_only and user["role"] != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )

    update_user_last_login(user["id"])
    logger.info(f"Login: user id={user['id']}, username={user['username']}, role={user['role']}")
    return _auth_response(get_user_by_id(user["id"]))


@router.post("/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate):
    """Register a new student account and log it in."""
    username = user_data.username.strip()

    if get_user_by_username(username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already registered"
        )

    if user_data.student_id and get_user_by_student_id(user_data.student_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Student ID already registered"
        )

    try:
        user = create_user(
            username=username,
            hashed_password=get_password_hash(user_data.password),
            email=user_data.email.lower() if user_data.email else None,
            role=UserRole.STUDENT,
            name=user_data.name,
            student_id=user_data.student_id,
            department=user_data.department,
            grade=user_data.grade,
            major=user_data.major,
        )
    except IntegrityError as e:
        # Lost a race with a concurrent registration of the same username or student number
        logger.warning(f"register: integrity error for username={username}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or student ID already registered"
        ) from e
    return _auth_response(user)


@router.post("/auth/login", response_model=AuthResponse)
async def login(login_data: LoginRequest):
    """Login and get access + refresh tokens."""
    user = get_user_by_username(login_data.username)
    return _authenticate(user, login_data.password)


@router.post("/student/login", response_model=AuthResponse)
async def student_login(login_data: StudentLoginRequest):
    """Login with a student number instead of a username."""
    user = get_user_by_student_id(login_data.student_id)
    return _authenticate(user, login_data.password)


@router.post("/admin/login", response_model=AuthResponse)
async def admin_login(login_data: LoginRequest):
    """Login to the admin console. Non-admin accounts get 403."""
    user = get_user_by_username(login_data.username)
    return _authenticate(user, login_data.password, admin_only=True)


@router.post("/auth/refresh", response_model=Token)
async def refresh_token(refresh_data: RefreshTokenRequest):
    """Refresh access token using refresh token."""
    payload = decode_token(refresh_data.refresh_token, token_type="refresh")

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
        )

    user = get_user_by_id(payload.get("user_id")) if payload.get("user_id") else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive"
        )

    return _issue_tokens(user)


@router.get("/auth/me", response_model=UserResponse)
async def read_current_user(current_user: dict = Depends(get_current_active_user)):
    """Get current user info."""
    return UserResponse(**current_user)
