"""
Pydantic schemas for organization endpoints.

WHY: Schemas define request/response contracts for organizations,
providing validation, documentation, and type safety.
"""

from datetime import datetime

from pydantic import EmailStr, Field, AnyHttpUrl, field_validator

from classroom.models.organization import OrganizationType, SubscriptionStatus
from classroom.schemas.common import CamelModel


class OrganizationData(CamelModel):
    """
    Organization section of a provisioning sign-up.

    WHY: Validated strictly before anything is written; any failing field
    aborts provisioning with a field-level error list.
    """

    organization_name: str = Field(..., min_length=1, max_length=255)
    organization_type: OrganizationType
    organization_email: EmailStr
    organization_phone: str | None = Field(default=None, max_length=50)
    organization_address: str | None = Field(default=None, max_length=1000)
    organization_logo: AnyHttpUrl | None = None
    organization_logo_cld_pub_id: str | None = Field(default=None, max_length=255)

    @field_validator("organization_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Organization name must not be blank")
        return value

    @field_validator("organization_email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class OrganizationResponse(CamelModel):
    """
    Organization response schema.

    WHY: Returns organization data including subscription state so the
    client can show trial expiry.
    """

    id: str = Field(..., description="Organization ID")
    name: str
    type: OrganizationType
    email: str
    phone: str | None = None
    address: str | None = None
    logo: str | None = None
    logo_cld_pub_id: str | None = None
    subscription_status: SubscriptionStatus
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None
    created_at: datetime
    updated_at: datetime
