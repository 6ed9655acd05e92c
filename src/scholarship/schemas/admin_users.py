"""Pydantic schemas for admin user management."""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

from scholarship.db_users import UserRole, UserStatus
from scholarship.schemas.auth import normalize_student_id


class AdminUserCreate(BaseModel):
    """Schema for creating a new user (admin only)."""
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=6)
    email: Optional[EmailStr] = None
    role: str = UserRole.STUDENT
    name: Optional[str] = Field(None, max_length=100)
    student_id: Optional[str] = Field(None, max_length=32)
    department: Optional[str] = None
    grade: Optional[str] = None
    major: Optional[str] = None
    is_active: bool = True

    @field_validator("student_id", mode="before")
    @classmethod
    def blank_student_id_to_none(cls, v):
        return normalize_student_id(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if not UserRole.is_valid(v):
            raise ValueError(f"role must be one of: {', '.join(UserRole.all())}")
        return v


class AdminUserResponse(BaseModel):
    """Schema for user response (admin only, no password)."""
    id: int
    username: str
    email: Optional[str] = None
    role: str
    name: Optional[str] = None
    student_id: Optional[str] = None
    department: Optional[str] = None
    grade: Optional[str] = None
    major: Optional[str] = None
    is_active: bool
    status: str = Field(..., description="active or disabled")
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_user(cls, user: dict) -> "AdminUserResponse":
        status = UserStatus.ACTIVE if user["is_active"] else UserStatus.DISABLED
        return cls(**{**user, "status": status})


class AdminUserListResponse(BaseModel):
    """Schema for paginated user list response."""
    users: List[AdminUserResponse]
    total: int


class AdminUserStatusUpdate(BaseModel):
    status: str = Field(..., description="active or disabled")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in UserStatus.all():
            raise ValueError(f"status must be one of: {', '.join(UserStatus.all())}")
        return v


class AdminPasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6)
