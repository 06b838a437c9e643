"""User management utilities.

This module provides user management functionality including registration,
password hashing, credential checks and the admin-only user operations.
"""

import logging
from datetime import datetime
from typing import List, Optional

import bcrypt
import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import BCRYPT_ROUNDS
from core.exceptions import (
    EmptyUpdateError,
    InvalidCredentialsError,
    SelfDeletionError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from core.security import ROLE_USER
from models.task import TaskModel
from models.user import UserModel

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

# Fields an admin may change through update_user
UPDATABLE_FIELDS = ("username", "email", "role", "password")


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    @staticmethod
    def _password_bytes(password: str) -> bytes:
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > BCRYPT_MAX_BYTES:
            logger.warning(
                "Password exceeds %d bytes (%d bytes), truncating",
                BCRYPT_MAX_BYTES,
                len(password_bytes),
            )
            password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
        return password_bytes

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string, salt included).
        """
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        hashed = bcrypt.hashpw(self._password_bytes(password), salt)
        return hashed.decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        try:
            return bcrypt.checkpw(
                self._password_bytes(plain_password),
                hashed_password.encode("utf-8"),
            )
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def create_user(self, username: str, email: str, password: str) -> UserModel:
        """Register a new user.

        The role is always USER; elevated roles are granted by an admin.

        Args:
            username: Display name for the new user.
            email: Email address, unique across users.
            password: Plain text password.

        Returns:
            Created UserModel instance.

        Raises:
            UserAlreadyExistsError: If the email is already registered.
        """
        if self.get_user_by_email(email) is not None:
            raise UserAlreadyExistsError(email)

        model = UserModel(
            username=username,
            email=email,
            password_hash=self.hash_password(password),
            role=ROLE_USER,
        )

        # Two concurrent registrations can both pass the check above;
        # the unique constraint on email catches the loser.
        try:
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError(email) from e

        logger.info("Created user %d (%s)", model.id, email)
        return model

    def get_user_by_email(self, email: str) -> Optional[UserModel]:
        """Get a user by email address.

        Args:
            email: Email to look up.

        Returns:
            UserModel if found, None otherwise.
        """
        return self.db.query(UserModel).filter(UserModel.email == email).first()

    def get_user_by_id(self, user_id: int) -> Optional[UserModel]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            UserModel if found, None otherwise.
        """
        return self.db.query(UserModel).filter(UserModel.id == user_id).first()

    def authenticate(self, email: str, password: str) -> UserModel:
        """Check credentials and record the login.

        Args:
            email: Email address.
            password: Plain text password.

        Returns:
            The authenticated UserModel with last_login updated.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password
                does not match. Both cases raise the same error.
        """
        user = self.get_user_by_email(email)
        if user is None or not self.verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %s", email)
            raise InvalidCredentialsError("Invalid email or password")

        user.last_login = datetime.now(pytz.utc)
        self.db.commit()
        self.db.refresh(user)
        logger.info("User %d logged in", user.id)
        return user

    def list_users(self) -> List[UserModel]:
        """List all users, newest first."""
        return (
            self.db.query(UserModel)
            .order_by(UserModel.created_at.desc(), UserModel.id.desc())
            .all()
        )

    def update_user(self, user_id: int, changes: dict) -> UserModel:
        """Apply a partial update to a user.

        Args:
            user_id: ID of the user to update.
            changes: Mapping of field name to new value. Keys outside
                username/email/role/password are ignored. A password is
                re-hashed before it is stored.

        Returns:
            Updated UserModel instance.

        Raises:
            UserNotFoundError: If the user does not exist.
            EmptyUpdateError: If no recognized field is present.
            UserAlreadyExistsError: If the new email belongs to another user.
        """
        model = self.get_user_by_id(user_id)
        if model is None:
            raise UserNotFoundError(user_id)

        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
        if not updates:
            raise EmptyUpdateError()

        if "password" in updates:
            model.password_hash = self.hash_password(updates.pop("password"))
        if "role" in updates:
            updates["role"] = getattr(updates["role"], "value", updates["role"])
        for key, value in updates.items():
            setattr(model, key, value)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError(updates.get("email", "")) from e
        self.db.refresh(model)
        logger.info("Updated user %d (fields: %s)", user_id, ", ".join(sorted(changes)))
        return model

    def delete_user(self, user_id: int, acting_user_id: int) -> List[int]:
        """Delete a user and, through the cascade, their tasks.

        Args:
            user_id: ID of the user to delete.
            acting_user_id: ID of the admin performing the deletion.

        Returns:
            IDs of the tasks removed along with the user.

        Raises:
            SelfDeletionError: If an admin targets their own account.
            UserNotFoundError: If the user does not exist.
        """
        if user_id == acting_user_id:
            raise SelfDeletionError()

        model = self.get_user_by_id(user_id)
        if model is None:
            raise UserNotFoundError(user_id)

        task_ids = [
            task_id
            for (task_id,) in self.db.query(TaskModel.id).filter(TaskModel.user_id == user_id)
        ]
        self.db.delete(model)
        self.db.commit()
        logger.info(
            "User %d deleted by admin %d (%d tasks removed)",
            user_id,
            acting_user_id,
            len(task_ids),
        )
        return task_ids
