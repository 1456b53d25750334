"""
API Routers
FastAPI route handlers
"""

from tasktracker.routers import (
    auth,
    departments,
    profile,
    role_sync,
    tasks,
    users,
)

__all__ = [
    "auth",
    "departments",
    "profile",
    "role_sync",
    "tasks",
    "users",
]
