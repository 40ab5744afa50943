"""
Organization model.

WHY: Organizations are the tenants of the system. Every user, department,
subject and class traces back to exactly one organization, which is what
the authorization policy filters on.
"""

import enum
from sqlalchemy import Column, String, Text, DateTime, Enum
from sqlalchemy.orm import relationship

from classroom.models.base import Base, TimestampMixin, StringPrimaryKeyMixin, enum_values


class OrganizationType(str, enum.Enum):
    """Kind of institution an organization represents."""

    SCHOOL = "school"
    COLLEGE = "college"
    UNIVERSITY = "university"
    COACHING = "coaching"


class SubscriptionStatus(str, enum.Enum):
    """
    Subscription lifecycle state.

    WHY: New organizations start on a trial; billing is handled elsewhere
    and only flips this status.
    """

    TRIAL = "trial"
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class Organization(Base, StringPrimaryKeyMixin, TimestampMixin):
    """
    Organization model representing a tenant in the multi-tenant system.

    WHY: Multi-tenancy requires strict data isolation between organizations.
    The organization_id is used throughout the system to scope all queries and
    prevent cross-organization data access (OWASP A01: Broken Access Control).

    Organizations are only created by the provisioning workflow, together
    with their founding admin user.
    """

    __tablename__ = "organizations"

    name = Column(String(255), nullable=False)
    type = Column(
        Enum(OrganizationType, name="organization_type", values_callable=enum_values),
        nullable=False,
    )

    # Contact details
    # WHY: email is the tenant's unique contact address; stored lower-case
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    logo = Column(Text, nullable=True)
    logo_cld_pub_id = Column(String(255), nullable=True)

    # Subscription
    subscription_status = Column(
        Enum(SubscriptionStatus, name="subscription_status", values_callable=enum_values),
        nullable=False,
        default=SubscriptionStatus.TRIAL,
    )
    subscription_start_date = Column(DateTime, nullable=True)
    subscription_end_date = Column(DateTime, nullable=True)

    # Relationships
    users = relationship("User", back_populates="organization", passive_deletes=True)
    departments = relationship("Department", back_populates="organization", passive_deletes=True)
    subjects = relationship("Subject", back_populates="organization", passive_deletes=True)
    classes = relationship("Class", back_populates="organization", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"
