"""
User repository
"""

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.models.department import Department
from tasktracker.models.user import User, UserRole
from tasktracker.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """DB access for user accounts."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_ldap_uid(self, ldap_uid: str) -> User | None:
        """Look up a user by LDAP uid."""

        stmt = select(User).where(User.ldap_uid == ldap_uid)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_identifier(
        self,
        *,
        user_id: int | None = None,
        ldap_uid: str | None = None,
        email: str | None = None,
    ) -> User | None:
        """First user matching any of the supplied identifiers."""

        conditions = []
        if user_id is not None:
            conditions.append(User.id == user_id)
        if ldap_uid:
            conditions.append(User.ldap_uid == ldap_uid)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return None

        stmt = select(User).where(or_(*conditions)).order_by(User.id).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self,
        *,
        ldap_uid: str,
        name: str,
        email: str | None = None,
        role: UserRole = UserRole.EMPLOYEE,
    ) -> User:
        """Insert a new user."""

        user = User(ldap_uid=ldap_uid, name=name, email=email, role=role)
        return await self.create(user)

    async def list_users(
        self,
        *,
        q: str | None = None,
        role: UserRole | None = None,
        eligible_manager: bool = False,
        limit: int = 200,
    ) -> list[User]:
        """User search (admin listing)."""

        stmt = select(User)
        filters = []
        if q:
            pattern = f"%{q}%"
            filters.append(
                or_(
                    User.name.ilike(pattern),
                    User.email.ilike(pattern),
                    User.ldap_uid.ilike(pattern),
                )
            )
        if role:
            filters.append(User.role == role)
        if eligible_manager:
            filters.append(~exists().where(Department.manager_id == User.id))

        if filters:
            stmt = stmt.where(*filters)
        stmt = stmt.order_by(User.name, User.id).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_role(self, role: UserRole) -> list[User]:
        """All users holding the role."""

        stmt = select(User).where(User.role == role).order_by(User.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
