"""Task routes.

Every route acts on behalf of the authenticated identity. Mutations drop the
affected cache entries right after the write succeeds.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from config import API_PREFIX
from core.dependencies import CurrentIdentity, ResponseCacheDep, TaskManagerDep
from core.exceptions import (
    EmptyUpdateError,
    NotAuthorizedError,
    TaskNotFoundError,
    UserNotFoundError,
)
from schemas.task import CreateTaskRequest, Task, TaskDeletedResponse, UpdateTaskRequest

router = APIRouter(prefix=f"{API_PREFIX}/tasks", tags=["Task"])


def _raise_for_task_error(error: Exception):
    if isinstance(error, TaskNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    if isinstance(error, NotAuthorizedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
    if isinstance(error, EmptyUpdateError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    raise error


@router.get("", response_model=List[Task], summary="List own tasks")
def list_tasks(
    identity: CurrentIdentity,
    task_manager: TaskManagerDep,
) -> List[Task]:
    """List the caller's own tasks, newest first."""
    return [Task.model_validate(t) for t in task_manager.list_tasks(identity.user_id)]


@router.post(
    "",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
def create_task(
    req: CreateTaskRequest,
    identity: CurrentIdentity,
    task_manager: TaskManagerDep,
    cache: ResponseCacheDep,
) -> Task:
    """Create a task owned by the caller.

    Raises:
        HTTPException: 401 if the caller's account no longer exists.
    """
    try:
        model = task_manager.create_task(
            owner_id=identity.user_id,
            title=req.title,
            description=req.description,
            due_date=req.due_date,
        )
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    cache.invalidate_task(identity.user_id)
    return Task.model_validate(model)


@router.get("/{task_id}", response_model=Task, summary="Get a task")
def get_task(
    task_id: int,
    identity: CurrentIdentity,
    task_manager: TaskManagerDep,
) -> Task:
    """Get one task. Non-admin callers only reach their own tasks."""
    try:
        model = task_manager.get_task(task_id, identity)
    except (TaskNotFoundError, NotAuthorizedError) as e:
        _raise_for_task_error(e)
    return Task.model_validate(model)


@router.put("/{task_id}", response_model=Task, summary="Update a task")
def update_task(
    task_id: int,
    req: UpdateTaskRequest,
    identity: CurrentIdentity,
    task_manager: TaskManagerDep,
    cache: ResponseCacheDep,
) -> Task:
    """Partially update a task.

    Only the fields present in the body are changed; a body without any of
    title/description/completed/due_date is rejected with 400.
    """
    try:
        model = task_manager.update_task(task_id, identity, req.changes())
    except (TaskNotFoundError, NotAuthorizedError, EmptyUpdateError) as e:
        _raise_for_task_error(e)
    cache.invalidate_task(model.user_id, task_id)
    return Task.model_validate(model)


@router.delete("/{task_id}", response_model=TaskDeletedResponse, summary="Delete a task")
def delete_task(
    task_id: int,
    identity: CurrentIdentity,
    task_manager: TaskManagerDep,
    cache: ResponseCacheDep,
) -> TaskDeletedResponse:
    """Delete a task and drop its cached copies and the owner's task list."""
    try:
        owner_id = task_manager.delete_task(task_id, identity)
    except (TaskNotFoundError, NotAuthorizedError) as e:
        _raise_for_task_error(e)
    cache.invalidate_task(owner_id, task_id)
    return TaskDeletedResponse()
