"""
Pydantic schemas for enrollment endpoints.
"""

from datetime import datetime

from pydantic import Field

from classroom.schemas.common import CamelModel


class EnrollmentCreate(CamelModel):
    student_id: str = Field(..., min_length=1)
    class_id: int = Field(..., ge=1)


class JoinClassRequest(CamelModel):
    """Student joins a class with its invite code."""

    invite_code: str = Field(..., min_length=1, max_length=16)


class EnrollmentResponse(CamelModel):
    student_id: str
    class_id: int
    created_at: datetime
