"""Authentication routes

Tokens are issued by the LDAP auth service; this API only resolves them.
"""

from fastapi import APIRouter, Depends

from tasktracker.core.dependencies import get_current_user
from tasktracker.models.user import User
from tasktracker.schemas.user import UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
)
async def read_me(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Return the user the bearer token belongs to."""

    return UserResponse.model_validate(current_user)
