"""
System bootstrap service for initial admin setup.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.logging import get_logger
from tasktracker.models.user import UserRole
from tasktracker.repositories.user_repository import UserRepository
from tasktracker.services.user_service import UserService


logger = get_logger(__name__)


class SystemBootstrapService:
    """Makes sure the configured directory account exists and holds the admin role."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        user_repo: UserRepository | None = None,
        user_service: UserService | None = None,
    ) -> None:
        self.session = session
        self.user_repo = user_repo or UserRepository(session)
        self.user_service = user_service or UserService(session, user_repo=self.user_repo)

    async def ensure_system_admin(self, ldap_uid: str, name: str) -> None:
        logger.info("system_admin_bootstrap_start", ldap_uid=ldap_uid)

        user = await self.user_repo.get_by_ldap_uid(ldap_uid)
        if user is None:
            logger.info("system_admin_user_missing", ldap_uid=ldap_uid)
            user = await self.user_repo.create_user(
                ldap_uid=ldap_uid,
                name=name,
                role=UserRole.ADMIN,
            )
            logger.info("system_admin_user_created", ldap_uid=ldap_uid, user_id=user.id)
            return

        if user.role == UserRole.ADMIN:
            logger.info("system_admin_user_no_change", ldap_uid=ldap_uid, user_id=user.id)
            return

        # goes through set_user_role so any managed department is released
        await self.user_service.set_user_role(user.id, UserRole.ADMIN)
        logger.info(
            "system_admin_user_updated",
            ldap_uid=ldap_uid,
            user_id=user.id,
            updated_fields=["role"],
        )
