"""
Pydantic schemas for class endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import Field

from classroom.models.class_model import ClassStatus
from classroom.schemas.common import CamelModel
from classroom.schemas.subject import SubjectSummary
from classroom.schemas.user import UserSummary


class ClassCreate(CamelModel):
    """
    Class creation request schema.

    WHY: teacherId may be omitted when a teacher creates their own class;
    capacity falls back to the configured default.
    """

    subject_id: int = Field(..., ge=1)
    teacher_id: str | None = None
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    banner_url: str | None = None
    banner_cld_pub_id: str | None = Field(default=None, max_length=255)
    capacity: int | None = Field(default=None, ge=1)
    status: ClassStatus = ClassStatus.ACTIVE
    schedules: List[Dict[str, Any]] = Field(default_factory=list)


class ClassUpdate(CamelModel):
    subject_id: int | None = Field(default=None, ge=1)
    teacher_id: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    banner_url: str | None = None
    banner_cld_pub_id: str | None = Field(default=None, max_length=255)
    capacity: int | None = Field(default=None, ge=1)
    status: ClassStatus | None = None
    schedules: List[Dict[str, Any]] | None = None


class ClassResponse(CamelModel):
    """Class with subject, teacher and current enrollment count."""

    id: int
    subject_id: int
    teacher_id: str
    organization_id: str
    invite_code: str
    name: str
    description: str | None = None
    banner_url: str | None = None
    banner_cld_pub_id: str | None = None
    capacity: int
    status: ClassStatus
    schedules: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    subject: SubjectSummary | None = None
    teacher: UserSummary | None = None
    enrolled_count: int = 0
