"""
User model.

WHY: Users represent individuals who interact with the platform, with roles
determining their access level (admin, teacher or student) and
organization_id ensuring multi-tenant isolation.
"""

import enum
from sqlalchemy import Column, String, Enum, ForeignKey, Boolean, Text
from sqlalchemy.orm import relationship

from classroom.models.base import Base, TimestampMixin, StringPrimaryKeyMixin, enum_values


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    WHY: Enum ensures only valid roles can be assigned, preventing typos
    and making role-based access control (RBAC) more reliable.
    """

    ADMIN = "admin"  # Tenant owner, created only by organization provisioning
    TEACHER = "teacher"
    STUDENT = "student"


class User(Base, StringPrimaryKeyMixin, TimestampMixin):
    """
    User model representing individuals who use the platform.

    WHY: The organization_id foreign key ensures every user belongs to
    exactly one organization (required for multi-tenant data isolation).
    It is set once at creation and never updated.
    """

    __tablename__ = "users"

    # User identification
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    image = Column(Text, nullable=True)
    image_cld_pub_id = Column(String(255), nullable=True)

    # Authentication
    hashed_password = Column(String(255), nullable=True)

    # Authorization
    # WHY: Default STUDENT role ensures least-privilege access (A01: Broken Access Control)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        nullable=False,
        default=UserRole.STUDENT,
    )

    # Multi-tenancy
    organization_id = Column(
        String(32),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    organization = relationship("Organization", back_populates="users")
    taught_classes = relationship("Class", back_populates="teacher", passive_deletes=True)
    enrollments = relationship("Enrollment", back_populates="student", passive_deletes=True)
    teacher_departments = relationship(
        "TeacherDepartment",
        back_populates="teacher",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
