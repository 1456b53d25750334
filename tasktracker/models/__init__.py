"""
SQLAlchemy 2.0 Models
"""

from tasktracker.models.base import Base, BaseModel  # noqa: F401
from tasktracker.models.department import Department  # noqa: F401
from tasktracker.models.task import Task, TaskPriority, TaskStatus  # noqa: F401
from tasktracker.models.user import User, UserRole  # noqa: F401

__all__ = [
    "Base",
    "BaseModel",
    "Department",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "User",
    "UserRole",
]
