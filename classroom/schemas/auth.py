"""
Pydantic schemas for authentication endpoints.

WHY: Schemas define request/response contracts, providing:
1. Automatic validation of request data
2. API documentation (OpenAPI/Swagger)
3. Clear separation between API and database models
"""

from datetime import datetime
from typing import Any, Dict

from pydantic import EmailStr, Field, field_validator

from classroom.models.user import UserRole
from classroom.schemas.common import CamelModel
from classroom.schemas.organization import OrganizationResponse
from classroom.schemas.user import UserResponse


class SignInRequest(CamelModel):
    """Email/password sign-in."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, max_length=100, description="User's password")


class SignUpRequest(CamelModel):
    """
    Sign-up request schema.

    WHY: One endpoint serves two flows. With organizationData it provisions
    a new organization and its admin; organizationData is kept as a raw
    mapping here so the provisioning workflow can validate it and report
    every failing field itself. Without it, the caller joins an existing
    organization as a teacher or student.
    """

    email: EmailStr = Field(..., description="User's email address (must be unique)")
    password: str = Field(..., min_length=8, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    role: UserRole | None = Field(default=None, description="teacher or student for plain sign-up")
    organization_id: str | None = Field(default=None, description="Organization to join")
    image: str | None = None
    image_cld_pub_id: str | None = Field(default=None, max_length=255)
    organization_data: Dict[str, Any] | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class AuthResponse(CamelModel):
    """Session token plus the signed-in user (and organization after provisioning)."""

    token: str
    user: UserResponse
    organization: OrganizationResponse | None = None


class SessionResponse(CamelModel):
    """Current session."""

    user: UserResponse
    expires_at: datetime | None = None
