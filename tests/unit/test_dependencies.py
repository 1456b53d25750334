from fastapi import HTTPException, status
import pytest
from fastapi.security import HTTPAuthorizationCredentials

from tasktracker.core.dependencies import get_current_user, require_roles
from tasktracker.core.jwt import create_access_token
from tasktracker.models.user import User, UserRole


def _build_user(role: UserRole) -> User:
    return User(
        id=1,
        ldap_uid="tester",
        name="Tester",
        role=role,
    )


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
async def test_require_roles_allows_user_with_allowed_role() -> None:
    dependency = require_roles(UserRole.MANAGER, UserRole.ADMIN)
    user = _build_user(UserRole.MANAGER)

    result = await dependency(current_user=user)

    assert result is user


@pytest.mark.asyncio
async def test_require_roles_rejects_user_with_unallowed_role() -> None:
    dependency = require_roles(UserRole.ADMIN)
    user = _build_user(UserRole.EMPLOYEE)

    with pytest.raises(HTTPException) as exc_info:
        await dependency(current_user=user)

    assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
async def test_get_current_user_loads_user_from_token(make_user, async_db_session) -> None:
    user = await make_user(role=UserRole.MANAGER)
    token = create_access_token({"sub": str(user.id)})

    resolved = await get_current_user(credentials=_bearer(token), session=async_db_session)

    assert resolved.id == user.id
    assert resolved.role == UserRole.MANAGER


@pytest.mark.asyncio
async def test_get_current_user_rejects_missing_or_bad_token(async_db_session) -> None:
    with pytest.raises(HTTPException) as missing:
        await get_current_user(credentials=None, session=async_db_session)
    with pytest.raises(HTTPException) as garbage:
        await get_current_user(credentials=_bearer("not-a-jwt"), session=async_db_session)

    assert missing.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert garbage.value.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_get_current_user_rejects_unknown_subject(async_db_session) -> None:
    token = create_access_token({"sub": "999"})

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(credentials=_bearer(token), session=async_db_session)

    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
