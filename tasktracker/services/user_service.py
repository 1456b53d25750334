"""
User service

Pure business logic, no FastAPI dependency. Role changes made here keep the
department manager assignments in step with the user's role.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.config import settings
from tasktracker.core.exceptions import ConflictError, NotFoundError
from tasktracker.core.logging import metrics_counter
from tasktracker.models.user import UserRole
from tasktracker.repositories.department_repository import DepartmentRepository
from tasktracker.repositories.user_repository import UserRepository
from tasktracker.schemas.user import (
    UserListParams,
    UserProfileResponse,
    UserProfileUpdate,
    UserResponse,
)
from tasktracker.services.base import BaseService


class UserService(BaseService):
    """User roles, home department, profile and identity provisioning."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        user_repo: UserRepository | None = None,
        department_repo: DepartmentRepository | None = None,
    ):
        super().__init__(session)
        self.user_repo = user_repo or UserRepository(session)
        self.department_repo = department_repo or DepartmentRepository(session)

    async def list_users(self, params: UserListParams) -> list[UserResponse]:
        users = await self.user_repo.list_users(
            q=params.q,
            role=params.role,
            eligible_manager=params.eligible_manager,
            limit=settings.user_list_limit,
        )
        return [UserResponse.model_validate(user) for user in users]

    async def set_user_role(self, user_id: int, role: UserRole) -> UserResponse:
        """
        Change a user's role directly.

        Leaving the manager role releases every department the user manages
        in the same transaction. Becoming a manager without a department is
        allowed; the user then shows up in the role consistency report until
        an admin assigns a department.
        """

        async def action() -> UserResponse:
            # departments before the user row, the order DepartmentService locks in
            await self.department_repo.list_managed_by(user_id, for_update=True)
            user = await self.user_repo.get_by_id_or_raise(user_id, for_update=True)
            previous_role = user.role

            released = 0
            if role != UserRole.MANAGER:
                released = await self.department_repo.clear_manager(user.id)

            user.role = role
            user = await self.user_repo.update(user)

            if role == UserRole.MANAGER and not await self.department_repo.list_managed_by(user.id):
                self.logger.warning("manager_without_department", user_id=user.id)

            self.logger.info(
                "user_role_changed",
                user_id=user.id,
                from_role=previous_role.value,
                to_role=role.value,
                released_departments=released,
            )
            metrics_counter("user_role_change", to_role=role.value)
            return UserResponse.model_validate(user)

        return await self._execute_with_handling(
            "set_user_role", action, payload={"user_id": user_id, "role": role.value}
        )

    async def set_home_department(self, user_id: int, department_id: int | None) -> UserResponse:
        """Assign or clear the department a user belongs to as a member."""

        async def action() -> UserResponse:
            user = await self.user_repo.get_by_id_or_raise(user_id)
            if department_id is not None:
                await self.department_repo.get_by_id_or_raise(department_id)

            user.department_id = department_id
            user = await self.user_repo.update(user)
            return UserResponse.model_validate(user)

        return await self._execute_with_handling(
            "set_home_department",
            action,
            payload={"user_id": user_id, "department_id": department_id},
        )

    async def get_profile(self, user_id: int) -> UserProfileResponse:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"user_id={user_id} not found")

        department_name = None
        if user.department_id is not None:
            department = await self.department_repo.get_by_id(user.department_id)
            department_name = department.name if department else None

        profile = UserProfileResponse.model_validate(user)
        profile.department_name = department_name
        return profile

    async def update_profile(self, user_id: int, payload: UserProfileUpdate) -> UserProfileResponse:
        async def action() -> None:
            user = await self.user_repo.get_by_id_or_raise(user_id)
            for field, value in payload.model_dump(exclude_unset=True).items():
                if field in ("name", "language", "timezone") and value is None:
                    continue
                setattr(user, field, value)
            await self.user_repo.update(user)

        await self._execute_with_handling("update_profile", action, payload=payload)
        return await self.get_profile(user_id)

    async def provision_from_identity(
        self,
        ldap_uid: str,
        name: str,
        email: str | None = None,
    ) -> UserResponse:
        """
        Create the user on first successful directory authentication, or
        refresh name/email on later logins. The role is never changed here.
        """

        async def action() -> UserResponse:
            if email:
                owner = await self.user_repo.find_by_identifier(email=email)
                if owner is not None and owner.ldap_uid != ldap_uid:
                    raise ConflictError(f"Email {email} already belongs to another user")

            user = await self.user_repo.get_by_ldap_uid(ldap_uid)
            if user is None:
                user = await self.user_repo.create_user(ldap_uid=ldap_uid, name=name, email=email)
                self.logger.info("user_provisioned", user_id=user.id, ldap_uid=ldap_uid)
                return UserResponse.model_validate(user)

            if user.name != name or (email and user.email != email):
                user.name = name
                if email:
                    user.email = email
                user = await self.user_repo.update(user)
            return UserResponse.model_validate(user)

        return await self._execute_with_handling(
            "provision_from_identity", action, payload={"ldap_uid": ldap_uid}
        )
