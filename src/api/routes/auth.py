"""Authentication routes.

This module handles HTTP endpoints for registration, login and the
current-user lookup.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from config import API_PREFIX
from core.dependencies import CurrentIdentity, ResponseCacheDep, UserManagerDep
from core.exceptions import InvalidCredentialsError, UserAlreadyExistsError
from core.security import create_access_token
from schemas.user import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    User,
    UserSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_PREFIX}/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register(
    req: RegisterRequest,
    user_manager: UserManagerDep,
    cache: ResponseCacheDep,
) -> RegisterResponse:
    """Register a new user.

    The new account always gets the USER role, whatever the body says.

    Args:
        req: Registration request with username, email and password.
        user_manager: Injected UserManager instance.
        cache: Shared response cache; cached user listings are dropped.

    Returns:
        RegisterResponse with the created user.

    Raises:
        HTTPException: 400 if the email is already registered.
    """
    try:
        user = user_manager.create_user(
            username=req.username,
            email=req.email,
            password=req.password,
        )
    except UserAlreadyExistsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    cache.invalidate_user(user.id)
    return RegisterResponse(user=UserSummary.model_validate(user))


@router.post("/login", response_model=LoginResponse, summary="Log in and get a bearer token")
def login(
    req: LoginRequest,
    user_manager: UserManagerDep,
    cache: ResponseCacheDep,
) -> LoginResponse:
    """Login with email and password.

    Unknown emails and wrong passwords produce the same 401 response.

    Args:
        req: Login request with email and password.
        user_manager: Injected UserManager instance.
        cache: Shared response cache; listings show last_login, so they are dropped.

    Returns:
        LoginResponse with user information and JWT token.

    Raises:
        HTTPException: If login fails.
    """
    try:
        user = user_manager.authenticate(req.email, req.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    cache.invalidate_user(user.id)
    token = create_access_token(user_id=user.id, role=user.role)
    return LoginResponse(token=token, user=User.model_validate(user))


@router.post("/logout", response_model=MessageResponse, summary="Log out")
def logout() -> MessageResponse:
    """Logout endpoint.

    Note: Since we're using stateless JWT tokens, logout is handled
    client-side by removing the token. This endpoint exists for API
    consistency.
    """
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=CurrentUserResponse, summary="Get current user")
def get_current_user_info(
    identity: CurrentIdentity,
    user_manager: UserManagerDep,
) -> CurrentUserResponse:
    """Get current authenticated user information.

    Raises:
        HTTPException: 401 if the token's user no longer exists.
    """
    user = user_manager.get_user_by_id(identity.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return CurrentUserResponse(user=User.model_validate(user))
