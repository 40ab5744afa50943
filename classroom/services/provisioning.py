"""
Organization provisioning workflow.

WHAT: Creates a new organization together with its founding admin user.

WHY: An organization without an admin is unusable and an admin without an
organization is invalid, so both are written in one transaction. Any
failure after the organization insert leaves nothing behind because the
request session rolls back as a whole.

HOW: A single attempt walks a fixed state machine:

    RECEIVED -> VALIDATED -> ORGANIZATION_CREATED
             -> DELEGATED_TO_IDENTITY_STORE -> COMPLETED
    (any step) -> FAILED

Every transition is logged. There are no retries.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.config import settings
from classroom.core.exceptions import AppException, ValidationError
from classroom.dao.organization import OrganizationDAO
from classroom.models.organization import Organization
from classroom.models.user import User, UserRole
from classroom.schemas.auth import SignUpRequest
from classroom.schemas.organization import OrganizationData
from classroom.services.identity_service import IdentityService

logger = logging.getLogger(__name__)


class ProvisioningState(str, enum.Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    ORGANIZATION_CREATED = "organization_created"
    DELEGATED_TO_IDENTITY_STORE = "delegated_to_identity_store"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ProvisioningResult:
    organization: Organization
    user: User
    states: List[ProvisioningState] = field(default_factory=list)


def field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    """Flatten a pydantic error into {field, message} entries (camelCase field names)."""
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
            }
        )
    return errors


class OrganizationProvisioningService:
    """
    Service running one provisioning attempt.

    WHAT: Validates organizationData, inserts the organization on a trial
    subscription and delegates the admin account to IdentityService.

    WHY: The outbound account payload is rebuilt from scratch; any role or
    organizationId the client sent is discarded, so sign-up can never attach
    an admin to an existing tenant.

    Example:
        service = OrganizationProvisioningService(db)
        result = await service.provision(request)
    """

    def __init__(
        self,
        session: AsyncSession,
        identity_service: Optional[IdentityService] = None,
    ):
        self.org_dao = OrganizationDAO(session)
        self.identity_service = identity_service or IdentityService(session)
        self.state: Optional[ProvisioningState] = None
        self.history: List[ProvisioningState] = []

    def _transition(self, state: ProvisioningState, **context: Any) -> None:
        self.state = state
        self.history.append(state)
        logger.info("Provisioning %s %s", state.value, context or "")

    def validate(self, organization_data: Dict[str, Any]) -> OrganizationData:
        """
        Strictly validate the organization section.

        Raises:
            ValidationError: Listing every failing field
        """
        try:
            return OrganizationData.model_validate(organization_data)
        except PydanticValidationError as exc:
            raise ValidationError(
                message="Invalid organization data",
                errors=field_errors(exc),
            ) from exc

    @staticmethod
    def admin_account_payload(request: SignUpRequest, organization_id: str) -> Dict[str, Any]:
        """
        Rewrite the sign-up payload for the identity store.

        Returns:
            Exactly {email, password, name, role=admin, organization_id}
        """
        return {
            "email": request.email,
            "password": request.password,
            "name": request.name,
            "role": UserRole.ADMIN,
            "organization_id": organization_id,
        }

    async def provision(self, request: SignUpRequest, now: Optional[datetime] = None) -> ProvisioningResult:
        """
        Run the workflow for a sign-up that carries organizationData.

        Args:
            request: Sign-up request with organization_data set
            now: Clock override for the trial window

        Returns:
            ProvisioningResult with the new organization and admin user

        Raises:
            ValidationError: organizationData failed validation (nothing written)
            ResourceAlreadyExistsError: Organization or admin email taken
        """
        self._transition(ProvisioningState.RECEIVED, email=request.email)

        try:
            data = self.validate(request.organization_data or {})
            self._transition(ProvisioningState.VALIDATED)

            start = now or datetime.utcnow()
            organization = await self.org_dao.create_organization(
                name=data.organization_name,
                type=data.organization_type,
                email=data.organization_email,
                phone=data.organization_phone,
                address=data.organization_address,
                logo=str(data.organization_logo) if data.organization_logo else None,
                logo_cld_pub_id=data.organization_logo_cld_pub_id,
                subscription_start_date=start,
                subscription_end_date=start + timedelta(days=settings.TRIAL_PERIOD_DAYS),
            )
            self._transition(ProvisioningState.ORGANIZATION_CREATED, organization_id=organization.id)

            payload = self.admin_account_payload(request, organization.id)
            self._transition(ProvisioningState.DELEGATED_TO_IDENTITY_STORE)
            user = await self.identity_service.register_account(**payload)

        except AppException as exc:
            self._transition(ProvisioningState.FAILED, error=exc.__class__.__name__)
            raise

        self._transition(ProvisioningState.COMPLETED, organization_id=organization.id, user_id=user.id)
        return ProvisioningResult(organization=organization, user=user, states=list(self.history))
