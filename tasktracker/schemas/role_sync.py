"""Role consistency schemas"""

from pydantic import Field

from tasktracker.schemas.base import BaseSchema


class ManagerWithoutDepartment(BaseSchema):
    id: int
    name: str
    ldap_uid: str


class DepartmentWithoutManagerRole(BaseSchema):
    id: int
    name: str
    manager_id: int


class RoleConsistencyReport(BaseSchema):
    is_consistent: bool
    users_without_departments: list[ManagerWithoutDepartment] = Field(default_factory=list)
    departments_without_manager_role: list[DepartmentWithoutManagerRole] = Field(
        default_factory=list
    )
    shared_manager_ids: list[int] = Field(
        default_factory=list,
        description="Users named as manager by more than one department",
    )


class RoleSyncResult(BaseSchema):
    demoted: int = 0
    promoted: int = 0
    failed: int = 0
