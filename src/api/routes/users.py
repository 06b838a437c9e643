"""Admin user management routes."""

from fastapi import APIRouter, HTTPException, status

from config import API_PREFIX
from core.dependencies import AdminIdentity, ResponseCacheDep, UserManagerDep
from core.exceptions import (
    EmptyUpdateError,
    SelfDeletionError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from schemas.user import (
    MessageResponse,
    UpdateUserRequest,
    User,
    UserListResponse,
    UserUpdatedResponse,
)

router = APIRouter(prefix=f"{API_PREFIX}/users", tags=["User"])


@router.get("", response_model=UserListResponse, summary="List all users (admin)")
def list_users(
    admin: AdminIdentity,
    user_manager: UserManagerDep,
) -> UserListResponse:
    """List every user, newest first, with the member count."""
    users = [User.model_validate(m) for m in user_manager.list_users()]
    return UserListResponse(totalMembers=len(users), users=users)


@router.put("/{user_id}", response_model=UserUpdatedResponse, summary="Update a user (admin)")
def update_user(
    user_id: int,
    req: UpdateUserRequest,
    admin: AdminIdentity,
    user_manager: UserManagerDep,
    cache: ResponseCacheDep,
) -> UserUpdatedResponse:
    """Partially update a user's username, email, role or password.

    Args:
        user_id: ID of the user to update.
        req: Fields to change; a supplied password is re-hashed.
        admin: The acting admin.
        user_manager: Injected UserManager instance.
        cache: Shared response cache.

    Raises:
        HTTPException: 400 on an empty update or a taken email, 404 if the
            user does not exist.
    """
    try:
        model = user_manager.update_user(user_id, req.model_dump(exclude_unset=True))
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except EmptyUpdateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserAlreadyExistsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    cache.invalidate_user(user_id)
    return UserUpdatedResponse(user=User.model_validate(model))


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a user (admin)")
def delete_user(
    user_id: int,
    admin: AdminIdentity,
    user_manager: UserManagerDep,
    cache: ResponseCacheDep,
) -> MessageResponse:
    """Delete a user and their tasks. Admins cannot delete themselves.

    Cached copies of the removed tasks are dropped for every reader.

    Raises:
        HTTPException: 400 on self-deletion, 404 if the user does not exist.
    """
    try:
        task_ids = user_manager.delete_user(user_id, acting_user_id=admin.user_id)
    except SelfDeletionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    cache.invalidate_user(user_id, deleted=True, task_ids=task_ids)
    return MessageResponse(message="User deleted successfully")
