"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from datetime import datetime

import pytz
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(pytz.utc)


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(10), nullable=False, default="USER")  # 'USER' or 'ADMIN'
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    last_login = Column(DateTime(timezone=True), nullable=True)

    tasks = relationship(
        "TaskModel",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
