"""Department management router"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.db import get_session
from tasktracker.core.dependencies import require_roles
from tasktracker.models.user import UserRole
from tasktracker.schemas.department import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentTreeNode,
    DepartmentUpdate,
    DepartmentUserAssignment,
)
from tasktracker.schemas.user import UserResponse
from tasktracker.services.department_service import DepartmentService


router = APIRouter(
    prefix="/departments",
    tags=["departments"],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)


def get_department_service(
    session: AsyncSession = Depends(get_session),
) -> DepartmentService:
    return DepartmentService(session=session)


@router.get(
    "",
    response_model=list[DepartmentTreeNode],
    summary="Department tree",
)
async def list_departments(
    service: DepartmentService = Depends(get_department_service),
) -> list[DepartmentTreeNode]:
    return await service.list_departments()


@router.post(
    "",
    response_model=DepartmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create department",
)
async def create_department(
    payload: DepartmentCreate,
    service: DepartmentService = Depends(get_department_service),
) -> DepartmentResponse:
    """
    Create a department, optionally appointing its manager.

    The appointed user is promoted to manager and moved into the new
    department in the same transaction.
    """

    return await service.create_department(payload)


@router.put(
    "/{department_id}",
    response_model=DepartmentResponse,
    summary="Update department",
)
async def update_department(
    department_id: int,
    payload: DepartmentUpdate,
    service: DepartmentService = Depends(get_department_service),
) -> DepartmentResponse:
    """
    Rename, move or change the manager of a department.

    Omit ``manager_id`` / ``parent_id`` to keep them; send ``null`` to clear.
    """

    return await service.update_department(department_id, payload)


@router.delete(
    "/{department_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete department",
)
async def delete_department(
    department_id: int,
    service: DepartmentService = Depends(get_department_service),
) -> None:
    await service.delete_department(department_id)


@router.post(
    "/{department_id}/users",
    response_model=UserResponse,
    summary="Add a user to the department",
)
async def assign_user(
    department_id: int,
    payload: DepartmentUserAssignment,
    service: DepartmentService = Depends(get_department_service),
) -> UserResponse:
    return await service.assign_user(department_id, payload)
