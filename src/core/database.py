"""Database connection and session management.

This module handles the relational store connection using SQLAlchemy.
The process refuses to start without a configured DATABASE_URL.
"""

import logging
import sys
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401

logger = logging.getLogger(__name__)


def resolve_database_url(url: Optional[str]) -> str:
    """Return the configured database URL or terminate the process.

    Args:
        url: Database URL read from the environment.

    Returns:
        The URL, stripped of surrounding whitespace.

    Raises:
        SystemExit: If no URL is configured.
    """
    if not url or not url.strip():
        logger.critical("DATABASE_URL is missing; set it in the environment or .env")
        sys.exit(1)
    return url.strip()


def create_db_engine(url: str) -> Engine:
    """Create an engine for the given URL.

    SQLite connections are shared across the request thread pool, and an
    in-memory SQLite database is pinned to a single connection so every
    session sees the same tables.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    sqlite_engine = create_engine(url, **kwargs)

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


SQLALCHEMY_DATABASE_URL = resolve_database_url(DATABASE_URL)

engine = create_db_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Create tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
