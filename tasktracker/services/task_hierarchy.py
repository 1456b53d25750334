"""
Task Hierarchy Propagator

A parent task's status is derived from its subtasks:

* every subtask completed          -> completed
* some, but not all, completed     -> in_progress
* none completed                   -> todo

``blocker`` subtasks only count as "not completed"; a blocked child does not
block its parent. A task without subtasks is never touched here.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.logging import get_logger, metrics_counter
from tasktracker.models.task import Task, TaskStatus
from tasktracker.repositories.task_repository import TaskRepository

logger = get_logger(__name__)


def aggregate_subtask_status(statuses: Iterable[TaskStatus]) -> TaskStatus | None:
    """Target parent status for the given subtask statuses, None when there are none."""

    statuses = list(statuses)
    if not statuses:
        return None

    completed = sum(1 for status in statuses if status == TaskStatus.COMPLETED)
    if completed == len(statuses):
        return TaskStatus.COMPLETED
    if completed > 0:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.TODO


class TaskHierarchyPropagator:
    """Keeps parent task status in sync with subtask state.

    Called by TaskService after a subtask is created or changes status; the
    triggering call has already been authorized, so no checks happen here.
    """

    def __init__(self, session: AsyncSession, *, task_repo: TaskRepository | None = None) -> None:
        self.session = session
        self.task_repo = task_repo or TaskRepository(session)

    async def recompute_parent_status(self, parent_id: int) -> list[Task]:
        """
        Recompute ``parent_id``'s status, then walk up while statuses keep changing.

        Returns:
            Tasks whose status was changed, nearest ancestor first.
        """

        changed: list[Task] = []
        visited: set[int] = set()
        current_id: int | None = parent_id

        while current_id is not None and current_id not in visited:
            visited.add(current_id)

            subtasks = await self.task_repo.list_subtasks(current_id)
            target = aggregate_subtask_status(task.status for task in subtasks)
            if target is None:
                break

            parent = await self.task_repo.get_by_id(current_id)
            if parent is None:
                logger.warning("parent_task_missing", parent_id=current_id)
                break
            if parent.status == target:
                break

            previous = parent.status
            parent.status = target
            await self.task_repo.update(parent)

            logger.info(
                "parent_status_recomputed",
                task_id=parent.id,
                from_status=previous.value,
                to_status=target.value,
                subtasks=len(subtasks),
            )
            metrics_counter("parent_status_recomputed", to_status=target.value)
            changed.append(parent)
            current_id = parent.parent_id

        return changed
