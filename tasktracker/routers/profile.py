"""Own profile routes"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.db import get_session
from tasktracker.core.dependencies import get_current_user
from tasktracker.models.user import User
from tasktracker.schemas.user import UserProfileResponse, UserProfileUpdate
from tasktracker.services.user_service import UserService

router = APIRouter(prefix="/user", tags=["profile"])


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(session=session)


@router.get("/profile", response_model=UserProfileResponse, summary="Read own profile")
async def read_profile(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    return await service.get_profile(current_user.id)


@router.put("/profile", response_model=UserProfileResponse, summary="Update own profile")
async def update_profile(
    payload: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    """Role and department are not editable here; see the admin user routes."""

    return await service.update_profile(current_user.id, payload)
