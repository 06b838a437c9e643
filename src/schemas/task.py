"""Task schema definitions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateTaskRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class UpdateTaskRequest(BaseModel):
    """Partial task update.

    Unknown keys are ignored, so a body with none of these fields is an
    empty update. ``due_date`` may be set to null to clear it.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    completed: Optional[bool] = None
    due_date: Optional[datetime] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("title", "completed")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value

    def changes(self) -> dict:
        """Return only the fields present in the request body."""
        updates = self.model_dump(exclude_unset=True)
        if "description" in updates and updates["description"] is None:
            updates["description"] = ""
        return updates


class Task(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    user_id: int
    completed: bool
    due_date: Optional[datetime] = None
    created_at: datetime


class TaskDeletedResponse(BaseModel):
    message: str = "Task deleted"
