"""Task management utilities.

Every read or write of a single task goes through an ownership check:
non-admin callers only reach tasks they own, admins reach all of them.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.exceptions import (
    EmptyUpdateError,
    NotAuthorizedError,
    TaskNotFoundError,
    UserNotFoundError,
)
from core.security import Identity, can_access
from models.task import TaskModel
from models.user import UserModel

logger = logging.getLogger(__name__)

# Fields a task owner (or an admin) may change through update_task
UPDATABLE_FIELDS = ("title", "description", "completed", "due_date")


class TaskManager:
    """Manages task persistence and ownership rules using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize TaskManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def list_tasks(self, owner_id: int) -> List[TaskModel]:
        """List the tasks of one owner, newest first."""
        return (
            self.db.query(TaskModel)
            .filter(TaskModel.user_id == owner_id)
            .order_by(TaskModel.created_at.desc(), TaskModel.id.desc())
            .all()
        )

    def create_task(
        self,
        owner_id: int,
        title: str,
        description: Optional[str] = None,
        due_date=None,
    ) -> TaskModel:
        """Create a task owned by owner_id.

        Raises:
            UserNotFoundError: If the owner no longer exists.
        """
        owner_exists = (
            self.db.query(UserModel.id).filter(UserModel.id == owner_id).first()
        )
        if owner_exists is None:
            raise UserNotFoundError(owner_id)

        model = TaskModel(
            title=title,
            description=description or "",
            user_id=owner_id,
            due_date=due_date,
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Created task %d for user %d", model.id, owner_id)
        return model

    def get_task(self, task_id: int, identity: Identity) -> TaskModel:
        """Fetch a task the identity is allowed to see.

        Args:
            task_id: ID of the task.
            identity: The acting identity.

        Returns:
            TaskModel instance.

        Raises:
            TaskNotFoundError: If the task does not exist.
            NotAuthorizedError: If the identity neither owns the task nor is admin.
        """
        model = self.db.query(TaskModel).filter(TaskModel.id == task_id).first()
        if model is None:
            raise TaskNotFoundError(task_id)
        if not can_access(identity, model.user_id):
            logger.warning(
                "User %d denied access to task %d owned by %d",
                identity.user_id,
                task_id,
                model.user_id,
            )
            raise NotAuthorizedError("Not authorized")
        return model

    def update_task(self, task_id: int, identity: Identity, changes: dict) -> TaskModel:
        """Apply a partial update to a task.

        The existence and ownership checks run before the write, outside any
        transaction; a concurrent delete between the two is not guarded.

        Args:
            task_id: ID of the task.
            identity: The acting identity.
            changes: Mapping of field name to new value. Keys outside
                title/description/completed/due_date are ignored.

        Returns:
            Updated TaskModel instance.

        Raises:
            TaskNotFoundError: If the task does not exist.
            NotAuthorizedError: If the identity neither owns the task nor is admin.
            EmptyUpdateError: If no recognized field is present.
        """
        model = self.get_task(task_id, identity)

        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if not updates:
            raise EmptyUpdateError()

        for key, value in updates.items():
            setattr(model, key, value)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated task %d (fields: %s)", task_id, ", ".join(sorted(updates)))
        return model

    def delete_task(self, task_id: int, identity: Identity) -> int:
        """Delete a task.

        Returns:
            ID of the user who owned the deleted task.

        Raises:
            TaskNotFoundError: If the task does not exist.
            NotAuthorizedError: If the identity neither owns the task nor is admin.
        """
        model = self.get_task(task_id, identity)
        owner_id = model.user_id
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted task %d (owner %d)", task_id, owner_id)
        return owner_id
