"""Department schemas"""

from __future__ import annotations

from pydantic import Field, model_validator

from tasktracker.schemas.base import BaseResponseSchema, BaseSchema


class DepartmentCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=200)
    parent_id: int | None = Field(default=None, description="Parent department (None = top level)")
    manager_id: int | None = Field(default=None, description="User to appoint as manager")


class DepartmentUpdate(BaseSchema):
    """
    Partial update.

    ``parent_id`` and ``manager_id`` are tri-state: a field left out of the
    request body means "no change", an explicit ``null`` clears it.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    parent_id: int | None = None
    manager_id: int | None = None

    def is_set(self, field: str) -> bool:
        return field in self.model_fields_set


class DepartmentResponse(BaseResponseSchema):
    name: str
    parent_id: int | None
    manager_id: int | None


class DepartmentTreeNode(DepartmentResponse):
    children: list[DepartmentTreeNode] = Field(default_factory=list)


class DepartmentUserAssignment(BaseSchema):
    user_id: int | None = None
    ldap_uid: str | None = None
    email: str | None = None

    @model_validator(mode="after")
    def _require_identifier(self) -> DepartmentUserAssignment:
        if self.user_id is None and not self.ldap_uid and not self.email:
            raise ValueError("Provide user_id, ldap_uid or email")
        return self
