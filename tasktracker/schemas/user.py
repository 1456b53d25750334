"""
User schemas
"""

from datetime import datetime

from pydantic import Field

from tasktracker.models.user import UserRole
from tasktracker.schemas.base import BaseSchema


class UserResponse(BaseSchema):
    id: int
    ldap_uid: str
    name: str
    email: str | None = None
    phone: str | None = None
    bio: str | None = None
    language: str = "en"
    timezone: str = "UTC"
    role: UserRole
    department_id: int | None = None
    created_at: datetime
    updated_at: datetime


class UserProfileResponse(UserResponse):
    department_name: str | None = None


class UserListParams(BaseSchema):
    q: str | None = Field(default=None, description="Search in name, email and LDAP uid")
    role: UserRole | None = Field(default=None, description="Role filter")
    eligible_manager: bool = Field(
        default=False,
        description="Only users who do not manage a department yet",
    )


class UserRoleUpdate(BaseSchema):
    role: UserRole


class UserDepartmentUpdate(BaseSchema):
    department_id: int | None = Field(description="Home department; null removes membership")


class UserProfileUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    bio: str | None = None
    language: str | None = Field(default=None, max_length=10)
    timezone: str | None = Field(default=None, max_length=64)
