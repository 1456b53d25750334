"""User administration router"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.db import get_session
from tasktracker.core.dependencies import require_roles
from tasktracker.models.user import UserRole
from tasktracker.schemas.user import (
    UserDepartmentUpdate,
    UserListParams,
    UserResponse,
    UserRoleUpdate,
)
from tasktracker.services.user_service import UserService


router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(session=session)


@router.get("", response_model=list[UserResponse], summary="List users")
async def list_users(
    params: Annotated[UserListParams, Query()],
    service: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    """
    Search users.

    ``eligible_manager=true`` keeps only users who can still be appointed
    as a department manager.
    """

    return await service.list_users(params)


@router.put("/{user_id}/role", response_model=UserResponse, summary="Change user role")
async def set_user_role(
    user_id: int,
    payload: UserRoleUpdate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Leaving the manager role also releases every department the user managed."""

    return await service.set_user_role(user_id, payload.role)


@router.put(
    "/{user_id}/department",
    response_model=UserResponse,
    summary="Set or clear home department",
)
async def set_home_department(
    user_id: int,
    payload: UserDepartmentUpdate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    return await service.set_home_department(user_id, payload.department_id)
