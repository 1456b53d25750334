"""
Task API Routes

Listing is scoped by role: admins see everything, managers their home
department, employees their own tasks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.db import get_session
from tasktracker.core.dependencies import get_current_user
from tasktracker.models.user import User
from tasktracker.schemas.task import (
    TaskCreate,
    TaskListParams,
    TaskResponse,
    TaskStatsResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from tasktracker.services.task_service import TaskService

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(get_current_user)],
)


def get_task_service(
    session: AsyncSession = Depends(get_session),
) -> TaskService:
    return TaskService(session=session)


@router.get("", response_model=list[TaskResponse], summary="List visible tasks")
async def list_tasks(
    params: Annotated[TaskListParams, Query()],
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    return await service.list_tasks(current_user, params)


@router.get("/stats", response_model=TaskStatsResponse, summary="Task counts per status")
async def task_stats(
    params: Annotated[TaskListParams, Query()],
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskStatsResponse:
    return await service.task_stats(current_user, params)


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create task or subtask",
)
async def create_task(
    payload: TaskCreate,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """
    Create a task.

    With ``parent_id`` the task becomes a subtask and the parent's status is
    recomputed from its subtasks.
    """

    return await service.create_task(current_user, payload)


@router.patch("/{task_id}", response_model=TaskResponse, summary="Update task")
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return await service.update_task(current_user, task_id, payload)


@router.patch("/{task_id}/status", response_model=TaskResponse, summary="Update task status")
async def update_task_status(
    task_id: int,
    payload: TaskStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return await service.update_status(current_user, task_id, payload)
