from __future__ import annotations

from tasktracker.core.exceptions import AuthorizationError
from tasktracker.models.task import Task
from tasktracker.models.user import User, UserRole
from tasktracker.repositories.task_repository import TaskVisibility


def task_visibility_filter(user: User) -> TaskVisibility:
    """Row-level task restriction for the requesting user.

    Managers see their home department's tasks only (not sub-departments);
    a manager without a home department sees nothing.
    """
    if user.role == UserRole.ADMIN:
        return TaskVisibility()
    if user.role == UserRole.MANAGER:
        if user.department_id is None:
            return TaskVisibility(match_nothing=True)
        return TaskVisibility(department_id=user.department_id)
    return TaskVisibility(created_by_id=user.id)


def ensure_user_can_modify_task(user: User, task: Task) -> None:
    """Employees may change only tasks they own; managers and admins any task."""
    if user.role in (UserRole.ADMIN, UserRole.MANAGER):
        return
    if task.created_by_id != user.id:
        raise AuthorizationError("Cannot modify others' tasks")
