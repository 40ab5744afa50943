"""
SQLAlchemy models package.

WHY: Importing every model here registers it with Base.metadata, which
Alembic autogenerate and the test fixtures rely on.
"""

from classroom.models.base import Base, TimestampMixin, PrimaryKeyMixin, StringPrimaryKeyMixin
from classroom.models.organization import Organization, OrganizationType, SubscriptionStatus
from classroom.models.user import User, UserRole
from classroom.models.department import Department, TeacherDepartment
from classroom.models.subject import Subject
from classroom.models.class_model import Class, ClassStatus
from classroom.models.enrollment import Enrollment

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "StringPrimaryKeyMixin",
    "Organization",
    "OrganizationType",
    "SubscriptionStatus",
    "User",
    "UserRole",
    "Department",
    "TeacherDepartment",
    "Subject",
    "Class",
    "ClassStatus",
    "Enrollment",
]
