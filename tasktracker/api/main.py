"""
FastAPI Application Factory

Creates and configures FastAPI application
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasktracker.core.config import settings
from tasktracker.core.exceptions import TaskTrackerException
from tasktracker.core.logging import configure_logging, get_logger
from tasktracker.core.db import async_session_maker, close_db
from tasktracker.services.role_sync_service import RoleSyncService
from tasktracker.services.system_bootstrap_service import SystemBootstrapService

# Import routers
from tasktracker.routers import (
    auth,
    departments,
    profile,
    role_sync,
    tasks,
    users,
)
from tasktracker.api.error_handlers import register_exception_handlers
from tasktracker.api.response_middleware import SuccessEnvelopeMiddleware

logger = get_logger(__name__)


async def bootstrap_system_admin() -> None:
    if not settings.admin_ldap_uid:
        logger.warning("system_admin_bootstrap_skipped", reason="missing_admin_ldap_uid")
        return

    async with async_session_maker() as session:
        bootstrap_service = SystemBootstrapService(session)
        try:
            await bootstrap_service.ensure_system_admin(
                settings.admin_ldap_uid,
                settings.admin_name,
            )
            await session.commit()
            logger.info("system_admin_bootstrap_complete", ldap_uid=settings.admin_ldap_uid)
        except Exception as exc:  # noqa: BLE001
            await session.rollback()
            logger.error(
                "system_admin_bootstrap_failed",
                ldap_uid=settings.admin_ldap_uid,
                error=str(exc),
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan events

    Startup:
        - Configure logging
        - Bootstrap the configured admin account
        - Reconcile roles when ROLE_SYNC_ON_STARTUP is set

    Shutdown:
        - Close database connections
    """
    # Startup
    configure_logging()
    logger.info("application_startup", environment=settings.environment)

    await bootstrap_system_admin()

    if settings.role_sync_on_startup:
        try:
            await RoleSyncService(async_session_maker).sync_user_roles_with_departments()
        except TaskTrackerException as exc:
            # the server still starts; the job can be re-run from the admin API
            logger.error("startup_role_sync_failed", error=exc.message)

    yield

    # Shutdown
    logger.info("application_shutdown")
    await close_db()


def create_app() -> FastAPI:
    """
    Create FastAPI application

    Returns:
        Configured FastAPI app instance

    Usage:
        app = create_app()
        uvicorn.run(app, host="0.0.0.0", port=8000)
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Departments, users and hierarchical tasks",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Success envelope middleware
    app.add_middleware(SuccessEnvelopeMiddleware)

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    for router_module in (auth, profile, departments, users, tasks, role_sync):
        app.include_router(router_module.router, prefix=settings.api_v1_prefix)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint

        Returns:
            Status dict
        """
        return {
            "status": "ok",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    logger.info("fastapi_app_created", routes=len(app.routes))

    return app


# Application instance
app = create_app()
