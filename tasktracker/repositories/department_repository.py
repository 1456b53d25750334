"""
Department repository
"""

from typing import Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.models.department import Department
from tasktracker.models.user import User
from tasktracker.repositories.base import BaseRepository


class DepartmentRepository(BaseRepository[Department]):
    """Department CRUD and manager-assignment lookups"""

    def __init__(self, session: AsyncSession):
        super().__init__(Department, session)

    async def list_all(self) -> Sequence[Department]:
        """All departments ordered by name"""

        stmt = select(Department).order_by(Department.name, Department.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_by_name(self, name: str, parent_id: int | None) -> Department | None:
        """Department with this name under the given parent (None = top level)"""

        stmt = select(Department).where(Department.name == name)
        if parent_id is None:
            stmt = stmt.where(Department.parent_id.is_(None))
        else:
            stmt = stmt.where(Department.parent_id == parent_id)
        result = await self.session.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def list_managed_by(self, user_id: int, *, for_update: bool = False) -> list[Department]:
        """Departments naming this user as manager"""

        stmt = select(Department).where(Department.manager_id == user_id).order_by(Department.id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_managed_elsewhere(
        self,
        user_id: int,
        *,
        exclude_department_id: int | None = None,
    ) -> Department | None:
        """First department other than ``exclude_department_id`` managed by this user"""

        stmt = select(Department).where(Department.manager_id == user_id)
        if exclude_department_id is not None:
            stmt = stmt.where(Department.id != exclude_department_id)
        result = await self.session.execute(stmt.order_by(Department.id).limit(1))
        return result.scalar_one_or_none()

    async def list_with_managers(self) -> list[Department]:
        """Departments that currently have a manager assigned"""

        stmt = (
            select(Department)
            .where(Department.manager_id.is_not(None))
            .order_by(Department.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_child_ids(self, parent_id: int) -> list[int]:
        """Ids of direct child departments"""

        stmt = select(Department.id).where(Department.parent_id == parent_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_children(self, department_id: int) -> int:
        """Number of direct child departments"""

        stmt = select(func.count()).select_from(Department).where(
            Department.parent_id == department_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_members(self, department_id: int) -> int:
        """Number of users whose home department is this one"""

        stmt = select(func.count()).select_from(User).where(User.department_id == department_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def clear_manager(self, user_id: int) -> int:
        """Unset ``manager_id`` on every department managed by the user"""

        stmt = (
            update(Department)
            .where(Department.manager_id == user_id)
            .values(manager_id=None)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
