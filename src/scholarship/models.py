from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func, true
from .db import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    username = Column(String(64), unique=True, index=True, nullable=False)
    email = Column(String(255), index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, server_default="student")
    name = Column(String(100))
    student_id = Column(String(32), unique=True, index=True)
    department = Column(String(128))
    grade = Column(String(32))
    major = Column(String(128))
    is_active = Column(Boolean, nullable=False, server_default=true())
    last_login = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Batch(Base):
    __tablename__ = "batches"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, server_default="not_started", index=True)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("user_id", "batch_id", name="uq_applications_user_batch"),)
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    batch_id = Column(Integer, ForeignKey("batches.id"), index=True, nullable=False)
    status = Column(String(20), nullable=False, server_default="pending", index=True)
    # JSON documents kept as text so SQLite and PostgreSQL behave the same
    scholarship_items = Column(Text, nullable=False, server_default="[]")
    file_paths = Column(Text, nullable=False, server_default="[]")
    review_comment = Column(Text)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    reviewed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
