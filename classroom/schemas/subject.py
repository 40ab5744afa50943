"""
Pydantic schemas for subject endpoints.
"""

from datetime import datetime

from pydantic import Field

from classroom.schemas.common import CamelModel
from classroom.schemas.department import DepartmentResponse


class SubjectCreate(CamelModel):
    department_id: int = Field(..., ge=1)
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=255)


class SubjectUpdate(CamelModel):
    department_id: int | None = Field(default=None, ge=1)
    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=255)


class SubjectResponse(CamelModel):
    """Subject with its department embedded."""

    id: int
    department_id: int
    organization_id: str
    code: str
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime
    department: DepartmentResponse | None = None


class SubjectSummary(CamelModel):
    id: int
    code: str
    name: str
    department: DepartmentResponse | None = None
