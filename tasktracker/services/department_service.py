"""
Department service

Every path that changes which user manages which department goes through
here (plus ``UserService.set_user_role``), so that:

* a user manages at most one department, and
* a user has the manager role exactly when some department names them.

All checks run before the first write of an operation, so a rejected
request leaves nothing pending in the session.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.exceptions import ConflictError, NotFoundError, PreconditionError
from tasktracker.core.logging import metrics_counter
from tasktracker.models.department import Department
from tasktracker.models.user import User, UserRole
from tasktracker.repositories.department_repository import DepartmentRepository
from tasktracker.repositories.user_repository import UserRepository
from tasktracker.schemas.department import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentTreeNode,
    DepartmentUpdate,
    DepartmentUserAssignment,
)
from tasktracker.schemas.user import UserResponse
from tasktracker.services.base import BaseService


class DepartmentService(BaseService):
    """Department CRUD and manager assignment."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        department_repo: DepartmentRepository | None = None,
        user_repo: UserRepository | None = None,
    ):
        super().__init__(session)
        self.department_repo = department_repo or DepartmentRepository(session)
        self.user_repo = user_repo or UserRepository(session)

    async def list_departments(self) -> list[DepartmentTreeNode]:
        """Departments as a forest, siblings ordered by name."""

        departments = await self.department_repo.list_all()
        nodes = {
            dept.id: DepartmentTreeNode.model_validate(dept, from_attributes=True)
            for dept in departments
        }
        roots: list[DepartmentTreeNode] = []
        for dept in departments:
            node = nodes[dept.id]
            parent = nodes.get(dept.parent_id) if dept.parent_id is not None else None
            if parent is None:
                roots.append(node)
            else:
                parent.children.append(node)
        return roots

    async def create_department(self, payload: DepartmentCreate) -> DepartmentResponse:
        async def action() -> DepartmentResponse:
            if payload.parent_id is not None:
                await self.department_repo.get_by_id_or_raise(payload.parent_id)
            await self._ensure_name_available(payload.name, payload.parent_id)

            manager: User | None = None
            if payload.manager_id is not None:
                manager = await self._get_assignable_manager(payload.manager_id)

            department = await self.department_repo.create(
                Department(
                    name=payload.name,
                    parent_id=payload.parent_id,
                    manager_id=payload.manager_id,
                )
            )
            if manager is not None:
                await self._promote(manager, department)

            self.logger.info(
                "department_created",
                department_id=department.id,
                manager_id=department.manager_id,
            )
            return DepartmentResponse.model_validate(department)

        return await self._execute_with_handling("create_department", action, payload=payload)

    async def update_department(
        self,
        department_id: int,
        payload: DepartmentUpdate,
    ) -> DepartmentResponse:
        async def action() -> DepartmentResponse:
            department = await self.department_repo.get_by_id_or_raise(
                department_id, for_update=True
            )

            new_name = payload.name if payload.name is not None else department.name
            new_parent_id = (
                payload.parent_id if payload.is_set("parent_id") else department.parent_id
            )
            if new_parent_id != department.parent_id and new_parent_id is not None:
                await self.department_repo.get_by_id_or_raise(new_parent_id)
                await self._ensure_not_descendant(department.id, new_parent_id)
            if new_name != department.name or new_parent_id != department.parent_id:
                await self._ensure_name_available(
                    new_name, new_parent_id, exclude_department_id=department.id
                )

            manager_changes = (
                payload.is_set("manager_id") and payload.manager_id != department.manager_id
            )
            new_manager: User | None = None
            if manager_changes and payload.manager_id is not None:
                new_manager = await self._get_assignable_manager(
                    payload.manager_id, exclude_department_id=department.id
                )

            # checks done, writes below
            department.name = new_name
            department.parent_id = new_parent_id

            if manager_changes:
                previous_manager_id = department.manager_id
                department.manager_id = payload.manager_id
                await self.session.flush()

                if previous_manager_id is not None:
                    await self._demote_if_unassigned(previous_manager_id)
                if new_manager is not None:
                    await self._promote(new_manager, department)

                self.logger.info(
                    "department_manager_changed",
                    department_id=department.id,
                    previous_manager_id=previous_manager_id,
                    manager_id=department.manager_id,
                )

            department = await self.department_repo.update(department)
            return DepartmentResponse.model_validate(department)

        return await self._execute_with_handling(
            "update_department",
            action,
            payload={"department_id": department_id, **payload.model_dump(exclude_unset=True)},
        )

    async def delete_department(self, department_id: int) -> None:
        async def action() -> None:
            department = await self.department_repo.get_by_id_or_raise(
                department_id, for_update=True
            )

            if await self.department_repo.count_children(department.id) > 0:
                raise PreconditionError("Delete or reassign sub-departments first")
            if await self.department_repo.count_members(department.id) > 0:
                raise PreconditionError("Reassign users from this department before deletion")

            manager_id = department.manager_id
            if manager_id is not None:
                department.manager_id = None
                await self.session.flush()
                await self._demote_if_unassigned(manager_id)

            await self.department_repo.delete(department)
            self.logger.info(
                "department_deleted",
                department_id=department_id,
                demoted_manager_id=manager_id,
            )

        await self._execute_with_handling(
            "delete_department", action, payload={"department_id": department_id}
        )

    async def assign_user(
        self,
        department_id: int,
        payload: DepartmentUserAssignment,
    ) -> UserResponse:
        """Make the department the home department of a user found by id, LDAP uid or email."""

        async def action() -> UserResponse:
            department = await self.department_repo.get_by_id_or_raise(department_id)
            user = await self.user_repo.find_by_identifier(
                user_id=payload.user_id,
                ldap_uid=payload.ldap_uid,
                email=payload.email,
            )
            if user is None:
                raise NotFoundError("User not found")

            user.department_id = department.id
            user = await self.user_repo.update(user)
            return UserResponse.model_validate(user)

        return await self._execute_with_handling("assign_user", action, payload=payload)

    async def _get_assignable_manager(
        self,
        user_id: int,
        *,
        exclude_department_id: int | None = None,
    ) -> User:
        # row lock serialises concurrent appointments of the same user
        user = await self.user_repo.get_by_id_or_raise(user_id, for_update=True)
        other = await self.department_repo.find_managed_elsewhere(
            user_id, exclude_department_id=exclude_department_id
        )
        if other is not None:
            raise ConflictError(
                f"User {user_id} already manages department '{other.name}' (id={other.id})"
            )
        return user

    async def _ensure_name_available(
        self,
        name: str,
        parent_id: int | None,
        *,
        exclude_department_id: int | None = None,
    ) -> None:
        existing = await self.department_repo.get_by_name(name, parent_id)
        if existing is not None and existing.id != exclude_department_id:
            raise ConflictError("A department with this name already exists at this level")

    async def _ensure_not_descendant(self, department_id: int, new_parent_id: int) -> None:
        if new_parent_id == department_id:
            raise PreconditionError("A department cannot be its own parent")

        pending = [department_id]
        seen: set[int] = set()
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            child_ids = await self.department_repo.list_child_ids(current)
            if new_parent_id in child_ids:
                raise PreconditionError("A department cannot be moved under its own sub-department")
            pending.extend(child_ids)

    async def _promote(self, user: User, department: Department) -> None:
        user.role = UserRole.MANAGER
        user.department_id = department.id
        await self.session.flush()
        self.logger.info("user_promoted", user_id=user.id, department_id=department.id)
        metrics_counter("manager_role_change", action="promote")

    async def _demote_if_unassigned(self, user_id: int) -> None:
        """Demote to employee unless the user still manages another department."""

        if await self.department_repo.find_managed_elsewhere(user_id) is not None:
            return
        user = await self.user_repo.get_by_id(user_id)
        if user is None or user.role != UserRole.MANAGER:
            return

        user.role = UserRole.EMPLOYEE
        await self.session.flush()
        self.logger.info("user_demoted", user_id=user_id)
        metrics_counter("manager_role_change", action="demote")
