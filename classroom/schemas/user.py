"""
Pydantic schemas for user endpoints.
"""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from classroom.models.user import UserRole
from classroom.schemas.common import CamelModel


class UserResponse(CamelModel):
    """
    User response schema.

    WHY: Returns user data without sensitive information (no password hash).
    """

    id: str
    name: str
    email: str
    email_verified: bool = False
    image: str | None = None
    image_cld_pub_id: str | None = None
    role: UserRole
    organization_id: str
    created_at: datetime
    updated_at: datetime


class UserSummary(CamelModel):
    """Compact user embedded in class responses."""

    id: str
    name: str
    email: str
    image: str | None = None


class UserUpdate(CamelModel):
    """
    User update request schema (admin only).

    WHY: organizationId is deliberately absent; a user's tenant never
    changes. Unknown keys are ignored.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    role: UserRole | None = None
    image: str | None = None
    image_cld_pub_id: str | None = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str | None) -> str | None:
        return value.lower() if value else value
