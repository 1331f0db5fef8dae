from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..repositories import TaskRepository, get_repository
from ..schemas import CreateTaskDto, TaskOut, UpdateTaskDto

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)

_NOT_FOUND = "Task not found"


def _get_repo(repo: TaskRepository = Depends(get_repository)) -> TaskRepository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new Task and return the created resource.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_task(payload: CreateTaskDto, repo: TaskRepository = Depends(_get_repo)) -> TaskOut:
    """
    Create a new Task.
    """
    created = repo.create(payload)
    return TaskOut.model_validate(created)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TaskOut],
    response_model_exclude_none=True,
    summary="List Tasks",
    description="List all tasks. The order of the returned items is not guaranteed.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_tasks(repo: TaskRepository = Depends(_get_repo)) -> List[TaskOut]:
    """
    List every task.
    """
    return [TaskOut.model_validate(t) for t in repo.list()]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    response_model_exclude_none=True,
    summary="Get Task",
    description="Get a single Task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: str, repo: TaskRepository = Depends(_get_repo)) -> TaskOut:
    """
    Retrieve a single Task by its ID.
    """
    item = repo.get(task_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TaskOut.model_validate(item)


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskOut,
    response_model_exclude_none=True,
    summary="Update Task",
    description=(
        "Update an existing Task. title and isComplete are required; detail and dueAt "
        "are removed from the task when omitted."
    ),
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
    },
)
def update_task(
    task_id: str, payload: UpdateTaskDto, repo: TaskRepository = Depends(_get_repo)
) -> TaskOut:
    """
    Update a Task, removing any optional field the payload leaves out.
    """
    updated = repo.update(task_id, payload)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TaskOut.model_validate(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Task",
    description="Delete a Task by ID.",
    responses={
        204: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: str, repo: TaskRepository = Depends(_get_repo)) -> Response:
    """
    Delete a Task. Returns 204 on success, 404 if not found.
    """
    if not repo.delete(task_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
