"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from classroom.dao.base import BaseDAO
from classroom.dao.organization import OrganizationDAO
from classroom.dao.user import UserDAO
from classroom.dao.department import DepartmentDAO, TeacherDepartmentDAO
from classroom.dao.subject import SubjectDAO
from classroom.dao.class_model import ClassDAO
from classroom.dao.enrollment import EnrollmentDAO

__all__ = [
    "BaseDAO",
    "OrganizationDAO",
    "UserDAO",
    "DepartmentDAO",
    "TeacherDepartmentDAO",
    "SubjectDAO",
    "ClassDAO",
    "EnrollmentDAO",
]
