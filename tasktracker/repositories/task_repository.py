"""
Task Repository Layer

Plain INSERT/SELECT/UPDATE queries for tasks. The services own status
propagation and transaction boundaries; this layer only touches rows.
"""

from dataclasses import dataclass

from sqlalchemy import false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.models.task import Task, TaskPriority, TaskStatus
from tasktracker.repositories.base import BaseRepository


@dataclass(slots=True)
class TaskFilter:
    """Caller-supplied filters for task listing."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    q: str | None = None
    department_id: int | None = None
    created_by_id: int | None = None
    parent_id: int | None = None


@dataclass(slots=True, frozen=True)
class TaskVisibility:
    """Row-level restriction derived from the requester's role.

    All fields None and ``match_nothing`` False means unrestricted.
    """

    department_id: int | None = None
    created_by_id: int | None = None
    match_nothing: bool = False

    @property
    def is_unrestricted(self) -> bool:
        return (
            not self.match_nothing
            and self.department_id is None
            and self.created_by_id is None
        )


class TaskRepository(BaseRepository[Task]):
    """Task-centric RDB access."""

    def __init__(self, session: AsyncSession):
        super().__init__(Task, session)

    async def list_subtasks(self, parent_id: int) -> list[Task]:
        """Every task whose parent is ``parent_id``."""

        stmt = select(Task).where(Task.parent_id == parent_id).order_by(Task.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_tasks(
        self,
        filters: TaskFilter,
        visibility: TaskVisibility,
        *,
        limit: int | None = None,
    ) -> list[Task]:
        """Tasks matching both the caller filters and the visibility rule."""

        stmt = select(Task).where(*self._conditions(filters, visibility))
        stmt = stmt.order_by(Task.deadline.asc(), Task.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_status(
        self,
        filters: TaskFilter,
        visibility: TaskVisibility,
    ) -> dict[TaskStatus, int]:
        """Visible task counts grouped by status."""

        stmt = (
            select(Task.status, func.count())
            .where(*self._conditions(filters, visibility))
            .group_by(Task.status)
        )
        result = await self.session.execute(stmt)
        return {status: count for status, count in result.all()}

    def _conditions(self, filters: TaskFilter, visibility: TaskVisibility) -> list:
        conditions = []
        if filters.status:
            conditions.append(Task.status == filters.status)
        if filters.priority:
            conditions.append(Task.priority == filters.priority)
        if filters.q:
            pattern = f"%{filters.q}%"
            conditions.append(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        if filters.department_id is not None:
            conditions.append(Task.department_id == filters.department_id)
        if filters.created_by_id is not None:
            conditions.append(Task.created_by_id == filters.created_by_id)
        if filters.parent_id is not None:
            conditions.append(Task.parent_id == filters.parent_id)

        if visibility.match_nothing:
            conditions.append(false())
        if visibility.department_id is not None:
            conditions.append(Task.department_id == visibility.department_id)
        if visibility.created_by_id is not None:
            conditions.append(Task.created_by_id == visibility.created_by_id)
        return conditions
