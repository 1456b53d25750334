"""
Task Service

Task creation, updates and role-scoped listing. Any call that creates a
subtask or changes a subtask's status recomputes the parent chain before
returning.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.config import settings
from tasktracker.core.exceptions import AuthorizationError
from tasktracker.core.logging import metrics_counter
from tasktracker.core.permissions import ensure_user_can_modify_task, task_visibility_filter
from tasktracker.models.task import Task, TaskStatus
from tasktracker.models.user import User, UserRole
from tasktracker.repositories.department_repository import DepartmentRepository
from tasktracker.repositories.task_repository import TaskFilter, TaskRepository
from tasktracker.repositories.user_repository import UserRepository
from tasktracker.schemas.task import (
    TaskCreate,
    TaskListParams,
    TaskResponse,
    TaskStatsResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from tasktracker.services.base import BaseService
from tasktracker.services.task_hierarchy import TaskHierarchyPropagator


class TaskService(BaseService):
    """Task workflow on behalf of an authenticated user."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        task_repo: TaskRepository | None = None,
        user_repo: UserRepository | None = None,
        department_repo: DepartmentRepository | None = None,
        propagator: TaskHierarchyPropagator | None = None,
    ) -> None:
        super().__init__(session)
        self.task_repo = task_repo or TaskRepository(session)
        self.user_repo = user_repo or UserRepository(session)
        self.department_repo = department_repo or DepartmentRepository(session)
        self.propagator = propagator or TaskHierarchyPropagator(session, task_repo=self.task_repo)

    async def list_tasks(self, user: User, params: TaskListParams) -> list[TaskResponse]:
        tasks = await self.task_repo.list_tasks(
            self._to_filter(params),
            task_visibility_filter(user),
            limit=settings.task_list_limit,
        )
        return [TaskResponse.model_validate(task) for task in tasks]

    async def task_stats(self, user: User, params: TaskListParams) -> TaskStatsResponse:
        counts = await self.task_repo.count_by_status(
            self._to_filter(params),
            task_visibility_filter(user),
        )
        return TaskStatsResponse(
            total=sum(counts.values()),
            **{status.value: counts.get(status, 0) for status in TaskStatus},
        )

    async def create_task(self, user: User, payload: TaskCreate) -> TaskResponse:
        async def action() -> TaskResponse:
            created_by_id = user.id
            if user.role != UserRole.EMPLOYEE and payload.created_by_id is not None:
                created_by_id = payload.created_by_id
                if created_by_id != user.id:
                    await self.user_repo.get_by_id_or_raise(created_by_id)

            if user.role == UserRole.MANAGER:
                department_id = user.department_id
            else:
                department_id = payload.department_id
                if department_id is not None:
                    await self.department_repo.get_by_id_or_raise(department_id)

            if payload.parent_id is not None:
                parent = await self.task_repo.get_by_id_or_raise(payload.parent_id)
                ensure_user_can_modify_task(user, parent)

            task = await self.task_repo.create(
                Task(
                    title=payload.title,
                    description=payload.description,
                    deadline=payload.deadline,
                    priority=payload.priority,
                    status=payload.status,
                    blocker_reason=(
                        payload.blocker_reason if payload.status == TaskStatus.BLOCKER else None
                    ),
                    created_by_id=created_by_id,
                    department_id=department_id,
                    parent_id=payload.parent_id,
                )
            )
            self.logger.info(
                "task_created",
                task_id=task.id,
                created_by_id=created_by_id,
                department_id=department_id,
                parent_id=task.parent_id,
            )

            if task.parent_id is not None:
                await self.propagator.recompute_parent_status(task.parent_id)
            return TaskResponse.model_validate(task)

        return await self._execute_with_handling("create_task", action, payload=payload)

    async def update_task(self, user: User, task_id: int, payload: TaskUpdate) -> TaskResponse:
        async def action() -> TaskResponse:
            task = await self.task_repo.get_by_id_or_raise(task_id)
            ensure_user_can_modify_task(user, task)

            changes = payload.model_dump(exclude_unset=True)
            if "department_id" in changes and changes["department_id"] != task.department_id:
                if user.role != UserRole.ADMIN:
                    raise AuthorizationError("Only administrators can move tasks between departments")
                if changes["department_id"] is not None:
                    await self.department_repo.get_by_id_or_raise(changes["department_id"])

            status = changes.pop("status", None)
            blocker_reason = changes.pop("blocker_reason", None)
            for field in ("title", "description", "deadline", "priority"):
                if changes.get(field) is not None:
                    setattr(task, field, changes[field])
            if "department_id" in changes:
                task.department_id = changes["department_id"]

            if status is not None:
                return await self._change_status(task, status, blocker_reason)
            if blocker_reason is not None and task.status == TaskStatus.BLOCKER:
                task.blocker_reason = blocker_reason

            task = await self.task_repo.update(task)
            return TaskResponse.model_validate(task)

        return await self._execute_with_handling(
            "update_task",
            action,
            payload={"task_id": task_id, **payload.model_dump(exclude_unset=True, mode="json")},
        )

    async def update_status(
        self,
        user: User,
        task_id: int,
        payload: TaskStatusUpdate,
    ) -> TaskResponse:
        async def action() -> TaskResponse:
            task = await self.task_repo.get_by_id_or_raise(task_id)
            ensure_user_can_modify_task(user, task)
            return await self._change_status(task, payload.status, payload.blocker_reason)

        return await self._execute_with_handling(
            "update_status",
            action,
            payload={"task_id": task_id, "status": payload.status.value},
        )

    async def _change_status(
        self,
        task: Task,
        status: TaskStatus,
        blocker_reason: str | None,
    ) -> TaskResponse:
        previous = task.status
        task.status = status
        task.blocker_reason = blocker_reason if status == TaskStatus.BLOCKER else None
        task = await self.task_repo.update(task)

        if previous != status:
            self.logger.info(
                "task_status_change",
                task_id=task.id,
                from_status=previous.value,
                to_status=status.value,
            )
            metrics_counter("task_status_change", to_status=status.value)

        if task.parent_id is not None:
            await self.propagator.recompute_parent_status(task.parent_id)
        return TaskResponse.model_validate(task)

    @staticmethod
    def _to_filter(params: TaskListParams) -> TaskFilter:
        return TaskFilter(
            status=params.status,
            priority=params.priority,
            q=params.q,
            department_id=params.department_id,
            created_by_id=params.created_by_id,
            parent_id=params.parent_id,
        )
