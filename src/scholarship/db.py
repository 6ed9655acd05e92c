"""Engine and declarative base shared by the whole app."""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from scholarship import settings


def normalize_database_url(url: str) -> str:
    """Force the psycopg2 driver for PostgreSQL URLs; leave others untouched."""
    if "psycopg://" in url:
        return url.replace("psycopg://", "psycopg2://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


DATABASE_URL = normalize_database_url(settings.SQLALCHEMY_DATABASE_URL)

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # TestClient and the threadpool hand the connection across threads
    connect_args["check_same_thread"] = False

engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)

Base = declarative_base()
