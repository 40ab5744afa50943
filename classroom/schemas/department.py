"""
Pydantic schemas for department endpoints.
"""

from datetime import datetime

from pydantic import Field

from classroom.schemas.common import CamelModel


class DepartmentCreate(CamelModel):
    """
    Department creation request schema.

    WHY: organizationId is never accepted from the client; it is stamped
    from the caller's session.
    """

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=255)


class DepartmentUpdate(CamelModel):
    """Partial department update."""

    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=255)


class DepartmentResponse(CamelModel):
    id: int
    organization_id: str
    code: str
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class TeacherAssignmentRequest(CamelModel):
    """Assign a teacher to a department."""

    teacher_id: str = Field(..., min_length=1)


class TeacherAssignmentResponse(CamelModel):
    teacher_id: str
    department_id: int
    created_at: datetime
