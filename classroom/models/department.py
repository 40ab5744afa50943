"""
Department and teacher-department association models.

WHY: Departments are the top of the academic catalog
(department -> subject -> class). Teachers are assigned to departments
through a many-to-many association table.
"""

from sqlalchemy import Column, String, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from classroom.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Department(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Department within an organization.

    WHY: Department codes are only unique inside a tenant, so the unique
    constraint spans (code, organization_id).
    """

    __tablename__ = "departments"
    __table_args__ = (
        UniqueConstraint("code", "organization_id", name="dept_code_org_unique"),
    )

    organization_id = Column(
        String(32),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(String(255), nullable=True)

    organization = relationship("Organization", back_populates="departments")
    subjects = relationship("Subject", back_populates="department", passive_deletes=True)
    teacher_departments = relationship(
        "TeacherDepartment",
        back_populates="department",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, code={self.code})>"


class TeacherDepartment(Base, TimestampMixin):
    """Association between a teacher and a department (composite key)."""

    __tablename__ = "teacher_departments"

    teacher_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    department_id = Column(
        Integer,
        ForeignKey("departments.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    teacher = relationship("User", back_populates="teacher_departments")
    department = relationship("Department", back_populates="teacher_departments")

    def __repr__(self) -> str:
        return f"<TeacherDepartment(teacher_id={self.teacher_id}, department_id={self.department_id})>"
