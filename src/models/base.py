"""Declarative base shared by every database model."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
