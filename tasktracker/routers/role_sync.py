"""Role consistency administration router"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tasktracker.core.db import get_session_maker
from tasktracker.core.dependencies import require_roles
from tasktracker.models.user import UserRole
from tasktracker.schemas.role_sync import RoleConsistencyReport, RoleSyncResult
from tasktracker.services.role_sync_service import RoleSyncService


router = APIRouter(
    prefix="/admin/role-consistency",
    tags=["admin"],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)


def get_role_sync_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> RoleSyncService:
    return RoleSyncService(session_factory)


@router.get("", response_model=RoleConsistencyReport, summary="Validate role consistency")
async def validate_role_consistency(
    service: RoleSyncService = Depends(get_role_sync_service),
) -> RoleConsistencyReport:
    return await service.validate_role_consistency()


@router.post("/sync", response_model=RoleSyncResult, summary="Repair role mismatches")
async def sync_roles(
    service: RoleSyncService = Depends(get_role_sync_service),
) -> RoleSyncResult:
    """Demote managers without a department and promote designated managers."""

    return await service.sync_user_roles_with_departments()
