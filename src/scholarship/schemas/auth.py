"""Pydantic schemas for authentication."""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator


def normalize_student_id(value):
    """Strip a student number; a blank one means none."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class UserBase(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, max_length=100)
    student_id: Optional[str] = Field(None, max_length=32, description="Student number")
    department: Optional[str] = None
    grade: Optional[str] = None
    major: Optional[str] = None

    @field_validator("student_id", mode="before")
    @classmethod
    def blank_student_id_to_none(cls, v):
        return normalize_student_id(v)


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


class UserResponse(BaseModel):
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
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(Token):
    """Token pair plus the profile of the user it was issued to."""
    user: UserResponse


class LoginRequest(BaseModel):
    username: str
    password: str


class StudentLoginRequest(BaseModel):
    student_id: str
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str
