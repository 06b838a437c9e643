"""Database models.

Importing this package registers every table with ``Base.metadata``.
"""

from .base import Base
from .task import TaskModel
from .user import UserModel

__all__ = ["Base", "TaskModel", "UserModel"]
