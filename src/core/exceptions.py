"""Custom exception classes for the TaskMaster API.

Services raise these; route handlers translate them into HTTP responses.
"""

from typing import Optional


class TaskMasterError(Exception):
    """Base exception for all TaskMaster errors."""

    pass


class TaskNotFoundError(TaskMasterError):
    """Raised when a requested task cannot be found."""

    def __init__(self, task_id: int):
        """Initialize the exception.

        Args:
            task_id: The ID of the task that was not found.
        """
        self.task_id = task_id
        super().__init__(f"Task '{task_id}' not found")


class UserNotFoundError(TaskMasterError):
    """Raised when a requested user cannot be found."""

    def __init__(self, user_id: Optional[int] = None):
        """Initialize the exception.

        Args:
            user_id: The ID of the user that was not found, if known.
        """
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")


class UserAlreadyExistsError(TaskMasterError):
    """Raised when an email address is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email '{email}' already registered")


class InvalidCredentialsError(TaskMasterError):
    """Raised when an email/password pair does not match a user.

    Unknown emails and wrong passwords raise the same error so callers
    cannot tell them apart.
    """

    pass


class InvalidTokenError(TaskMasterError):
    """Raised when a bearer token is malformed, forged or expired."""

    pass


class NotAuthorizedError(TaskMasterError):
    """Raised when the acting identity may not touch a resource."""

    pass


class EmptyUpdateError(TaskMasterError):
    """Raised when a partial update carries no recognized fields."""

    def __init__(self):
        super().__init__("No fields to update")


class SelfDeletionError(TaskMasterError):
    """Raised when an admin tries to delete their own account."""

    def __init__(self):
        super().__init__("Cannot delete your own account")


class ConfigurationError(TaskMasterError):
    """Raised when there is a configuration error."""

    pass
