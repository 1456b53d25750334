"""
Department domain model
"""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tasktracker.models.base import BaseModel


class Department(BaseModel):
    """Department node in the organisation tree"""

    __tablename__ = "departments"
    __table_args__ = (UniqueConstraint("name", "parent_id", name="uq_departments_name_parent"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    # At most one department per manager. Enforced by DepartmentService,
    # repaired by RoleSyncService; deliberately not a column constraint.
    manager_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, name={self.name}, manager_id={self.manager_id})>"
