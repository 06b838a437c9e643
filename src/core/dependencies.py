"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes:
request-scoped managers, the shared response cache and the identity checks
that guard protected routes.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from core.cache import ResponseCache, get_response_cache
from core.database import get_db
from core.security import Identity
from utils import task_manager
from utils import user_manager

logger = logging.getLogger(__name__)


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_task_manager(db: Session = Depends(get_db)) -> task_manager.TaskManager:
    """Get TaskManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        TaskManager instance.
    """
    return task_manager.TaskManager(db)


def get_current_identity(request: Request) -> Identity:
    """Return the identity attached by the authentication middleware.

    Raises:
        HTTPException: 401 if the request carried no valid bearer token.
    """
    identity = getattr(request.state, "identity", None)
    if identity is not None:
        return identity

    detail = getattr(request.state, "auth_error", None) or "Access token required"
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Ensure the current identity carries the ADMIN role.

    Raises:
        HTTPException: 403 for non-admin callers.
    """
    if not identity.is_admin:
        logger.warning("User %d denied admin access", identity.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return identity


# Type aliases for dependency injection
UserManagerDep = Annotated[user_manager.UserManager, Depends(get_user_manager)]
TaskManagerDep = Annotated[task_manager.TaskManager, Depends(get_task_manager)]
ResponseCacheDep = Annotated[ResponseCache, Depends(get_response_cache)]
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
AdminIdentity = Annotated[Identity, Depends(require_admin)]
