"""
Organization Data Access Object.

WHY: Organizations are only written by the provisioning workflow and read
by the organization endpoint; this DAO keeps both on the same queries.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.dao.base import BaseDAO
from classroom.models.organization import Organization, OrganizationType, SubscriptionStatus
from classroom.core.exceptions import ResourceAlreadyExistsError


class OrganizationDAO(BaseDAO[Organization]):
    """Data Access Object for Organization model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Organization, session)

    async def email_exists(self, email: str) -> bool:
        """Check if an organization already uses this contact email."""
        result = await self.session.execute(
            select(Organization.id)
            .where(func.lower(Organization.email) == email.lower())
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def get_by_email(self, email: str) -> Optional[Organization]:
        result = await self.session.execute(
            select(Organization).where(func.lower(Organization.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def create_organization(
        self,
        name: str,
        type: OrganizationType,
        email: str,
        subscription_start_date: datetime,
        subscription_end_date: datetime,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        logo: Optional[str] = None,
        logo_cld_pub_id: Optional[str] = None,
    ) -> Organization:
        """
        Insert a new organization on a trial subscription.

        Raises:
            ResourceAlreadyExistsError: If the organization email is taken
        """
        if await self.email_exists(email):
            raise ResourceAlreadyExistsError(
                message="Organization with this email already exists",
                resource_type="Organization",
                email=email,
            )

        return await self.create(
            name=name,
            type=type,
            email=email.lower(),
            phone=phone,
            address=address,
            logo=logo,
            logo_cld_pub_id=logo_cld_pub_id,
            subscription_status=SubscriptionStatus.TRIAL,
            subscription_start_date=subscription_start_date,
            subscription_end_date=subscription_end_date,
        )
