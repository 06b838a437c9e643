"""User schema definitions.

Request bodies for registration, login and admin updates, plus the public
user representations returned by the API. Password hashes never appear in
any response model.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class RegisterRequest(BaseModel):
    """Registration body. Any extra field, including ``role``, is ignored."""

    username: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class UpdateUserRequest(BaseModel):
    """Admin partial update. Only the fields present in the body are applied."""

    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    password: Optional[str] = Field(default=None, min_length=8)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("username", "email", "role", "password")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class UserSummary(BaseModel):
    """User as returned right after registration."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: Role


class User(UserSummary):
    """Public user record."""

    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class RegisterResponse(BaseModel):
    message: str = "User registered"
    user: UserSummary


class LoginResponse(BaseModel):
    token: str
    user: User


class CurrentUserResponse(BaseModel):
    user: User


class UserListResponse(BaseModel):
    totalMembers: int
    users: List[User]


class UserUpdatedResponse(BaseModel):
    message: str = "User updated"
    user: User


class MessageResponse(BaseModel):
    message: str
