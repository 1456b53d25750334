"""
Role reconciliation

Detects and repairs drift between user roles and department manager
assignments that did not come through DepartmentService / UserService
(partial failures, manual data fixes):

* a user with the manager role who manages no department is demoted;
* a user named as a department's manager without the manager role is promoted.

The pass is not one snapshot transaction. Candidates are read once, then
each repair runs in its own short transaction and re-checks its condition,
so the job is idempotent and safe to re-run next to live traffic.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tasktracker.core.exceptions import StorageError
from tasktracker.core.logging import get_logger, metrics_counter
from tasktracker.models.department import Department
from tasktracker.models.user import User, UserRole
from tasktracker.repositories.department_repository import DepartmentRepository
from tasktracker.repositories.user_repository import UserRepository
from tasktracker.schemas.role_sync import (
    DepartmentWithoutManagerRole,
    ManagerWithoutDepartment,
    RoleConsistencyReport,
    RoleSyncResult,
)

logger = get_logger(__name__)


@dataclass(slots=True)
class _Candidates:
    users_without_departments: list[User] = field(default_factory=list)
    departments_without_manager_role: list[Department] = field(default_factory=list)
    shared_manager_ids: list[int] = field(default_factory=list)


class RoleSyncService:
    """Validation and repair of the manager role / department manager correspondence."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def validate_role_consistency(self) -> RoleConsistencyReport:
        """Read-only consistency report."""

        candidates = await self._collect_candidates()
        report = RoleConsistencyReport(
            is_consistent=not (
                candidates.users_without_departments
                or candidates.departments_without_manager_role
                or candidates.shared_manager_ids
            ),
            users_without_departments=[
                ManagerWithoutDepartment.model_validate(user)
                for user in candidates.users_without_departments
            ],
            departments_without_manager_role=[
                DepartmentWithoutManagerRole.model_validate(dept)
                for dept in candidates.departments_without_manager_role
            ],
            shared_manager_ids=candidates.shared_manager_ids,
        )
        logger.info(
            "role_consistency_validated",
            is_consistent=report.is_consistent,
            users_without_departments=len(report.users_without_departments),
            departments_without_manager_role=len(report.departments_without_manager_role),
            shared_manager_ids=report.shared_manager_ids,
        )
        return report

    async def sync_user_roles_with_departments(self) -> RoleSyncResult:
        """
        Repair every detected role mismatch.

        Returns counts of applied repairs. A repair that fails is logged and
        counted in ``failed``; only failing to read the candidates raises.
        """

        logger.info("role_sync_started")
        candidates = await self._collect_candidates()
        result = RoleSyncResult()

        for user in candidates.users_without_departments:
            outcome = await self._run_repair("demote", user.id, self._demote)
            if outcome is True:
                result.demoted += 1
            elif outcome is None:
                result.failed += 1

        promote_ids: list[int] = []
        for dept in candidates.departments_without_manager_role:
            if dept.manager_id not in promote_ids:
                promote_ids.append(dept.manager_id)
        for user_id in promote_ids:
            outcome = await self._run_repair("promote", user_id, self._promote)
            if outcome is True:
                result.promoted += 1
            elif outcome is None:
                result.failed += 1

        if candidates.shared_manager_ids:
            # which department keeps the manager is an admin decision
            logger.warning(
                "role_sync_shared_managers_left",
                user_ids=candidates.shared_manager_ids,
            )

        logger.info(
            "role_sync_completed",
            demoted=result.demoted,
            promoted=result.promoted,
            failed=result.failed,
        )
        return result

    async def _collect_candidates(self) -> _Candidates:
        try:
            async with self.session_factory() as session:
                managers = await UserRepository(session).list_by_role(UserRole.MANAGER)
                departments = await DepartmentRepository(session).list_with_managers()
        except SQLAlchemyError as exc:
            logger.error("role_sync_read_failed", error=str(exc))
            raise StorageError(f"Failed to read role candidates: {exc}") from exc

        manager_user_ids = {user.id for user in managers}
        assigned: dict[int, int] = {}
        for dept in departments:
            assigned[dept.manager_id] = assigned.get(dept.manager_id, 0) + 1

        return _Candidates(
            users_without_departments=[user for user in managers if user.id not in assigned],
            departments_without_manager_role=[
                dept for dept in departments if dept.manager_id not in manager_user_ids
            ],
            shared_manager_ids=sorted(uid for uid, count in assigned.items() if count > 1),
        )

    async def _run_repair(self, action: str, user_id: int, repair) -> bool | None:
        """Run one repair in its own transaction.

        Returns True when applied, False when no longer needed, None on failure.
        """

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    applied = await repair(session, user_id)
        except SQLAlchemyError as exc:
            logger.error("role_sync_repair_failed", action=action, user_id=user_id, error=str(exc))
            metrics_counter("role_sync_repair", action=action, outcome="failed")
            return None

        if applied:
            logger.info("role_sync_repaired", action=action, user_id=user_id)
            metrics_counter("role_sync_repair", action=action, outcome="applied")
        return applied

    async def _demote(self, session: AsyncSession, user_id: int) -> bool:
        user = await UserRepository(session).get_by_id(user_id, for_update=True)
        if user is None or user.role != UserRole.MANAGER:
            return False
        if await DepartmentRepository(session).find_managed_elsewhere(user_id) is not None:
            return False

        user.role = UserRole.EMPLOYEE
        await session.flush()
        return True

    async def _promote(self, session: AsyncSession, user_id: int) -> bool:
        user = await UserRepository(session).get_by_id(user_id, for_update=True)
        if user is None:
            logger.warning("role_sync_manager_missing", user_id=user_id)
            return False
        if user.role == UserRole.MANAGER:
            return False
        if await DepartmentRepository(session).find_managed_elsewhere(user_id) is None:
            return False

        user.role = UserRole.MANAGER
        await session.flush()
        return True
