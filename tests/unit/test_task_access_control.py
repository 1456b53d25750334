import pytest
from unittest.mock import MagicMock

from tasktracker.core.exceptions import AuthorizationError
from tasktracker.core.permissions import ensure_user_can_modify_task, task_visibility_filter
from tasktracker.models.user import UserRole


def build_user(role: UserRole, department_id: int | None = None, user_id: int = 1) -> MagicMock:
    user = MagicMock()
    user.id = user_id
    user.role = role
    user.department_id = department_id
    return user


def build_task(created_by_id: int) -> MagicMock:
    task = MagicMock()
    task.created_by_id = created_by_id
    return task


def test_visibility_for_admin_is_unrestricted():
    admin = build_user(UserRole.ADMIN, department_id=3)

    visibility = task_visibility_filter(admin)

    assert visibility.is_unrestricted


def test_visibility_for_manager_is_home_department():
    manager = build_user(UserRole.MANAGER, department_id=3)

    visibility = task_visibility_filter(manager)

    assert visibility.department_id == 3
    assert visibility.created_by_id is None
    assert not visibility.match_nothing


def test_visibility_for_manager_without_department_matches_nothing():
    manager = build_user(UserRole.MANAGER)

    visibility = task_visibility_filter(manager)

    assert visibility.match_nothing
    assert not visibility.is_unrestricted


def test_visibility_for_employee_is_own_tasks():
    employee = build_user(UserRole.EMPLOYEE, department_id=3, user_id=42)

    visibility = task_visibility_filter(employee)

    assert visibility.created_by_id == 42
    assert visibility.department_id is None


def test_employee_can_modify_own_task():
    employee = build_user(UserRole.EMPLOYEE, user_id=5)

    ensure_user_can_modify_task(employee, build_task(created_by_id=5))


def test_employee_cannot_modify_others_task():
    employee = build_user(UserRole.EMPLOYEE, user_id=5)

    with pytest.raises(AuthorizationError):
        ensure_user_can_modify_task(employee, build_task(created_by_id=6))


@pytest.mark.parametrize("role", [UserRole.MANAGER, UserRole.ADMIN])
def test_manager_and_admin_can_modify_any_task(role):
    user = build_user(role, user_id=5)

    ensure_user_can_modify_task(user, build_task(created_by_id=6))
