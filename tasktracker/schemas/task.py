"""Task schemas"""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from tasktracker.models.task import TaskPriority, TaskStatus
from tasktracker.schemas.base import BaseResponseSchema, BaseSchema


def _normalize_status(value: Any) -> Any:
    # clients send "in-progress"
    if isinstance(value, str):
        return value.strip().lower().replace("-", "_")
    return value


class TaskCreate(BaseSchema):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    deadline: datetime
    priority: TaskPriority
    status: TaskStatus = TaskStatus.TODO
    blocker_reason: str | None = None
    department_id: int | None = None
    created_by_id: int | None = Field(
        default=None,
        description="Owner; honoured for admins only",
    )
    parent_id: int | None = Field(default=None, description="Parent task for a subtask")

    normalize_status = field_validator("status", mode="before")(_normalize_status)


class TaskUpdate(BaseSchema):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    deadline: datetime | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    blocker_reason: str | None = None
    department_id: int | None = None

    normalize_status = field_validator("status", mode="before")(_normalize_status)


class TaskStatusUpdate(BaseSchema):
    status: TaskStatus
    blocker_reason: str | None = None

    normalize_status = field_validator("status", mode="before")(_normalize_status)


class TaskListParams(BaseSchema):
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    q: str | None = Field(default=None, description="Search in title and description")
    department_id: int | None = None
    created_by_id: int | None = None
    parent_id: int | None = None

    normalize_status = field_validator("status", mode="before")(_normalize_status)


class TaskResponse(BaseResponseSchema):
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    deadline: datetime
    blocker_reason: str | None
    created_by_id: int
    department_id: int | None
    parent_id: int | None


class TaskStatsResponse(BaseSchema):
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    completed: int = 0
    blocker: int = 0
