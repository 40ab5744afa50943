"""
Identity store service.

WHAT: Account creation, credential checks and session issuance.

WHY: Both sign-up flows end in the same place (a user row with a hashed
credential in one organization). Provisioning hands its rewritten admin
payload to register_account exactly like plain sign-up does, so the
account rules live in one service.

HOW: Wraps UserDAO and OrganizationDAO with the password and token helpers
from classroom.core.auth. Nothing here commits; the request transaction
does.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.auth import hash_password, verify_password, create_session_token
from classroom.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    OrganizationNotFoundError,
    ValidationError,
)
from classroom.dao.organization import OrganizationDAO
from classroom.dao.user import UserDAO
from classroom.models.user import User, UserRole
from classroom.schemas.auth import SignUpRequest

logger = logging.getLogger(__name__)


class IdentityService:
    """
    Service for user accounts and sessions.

    Example:
        service = IdentityService(db)
        user = await service.authenticate(email, password)
        token = service.issue_session(user)
    """

    def __init__(self, session: AsyncSession):
        self.user_dao = UserDAO(User, session)
        self.org_dao = OrganizationDAO(session)

    async def register_account(
        self,
        email: str,
        password: str,
        name: str,
        role: UserRole,
        organization_id: str,
        image: Optional[str] = None,
        image_cld_pub_id: Optional[str] = None,
    ) -> User:
        """
        Create a user and its credential.

        Raises:
            ResourceAlreadyExistsError: If the email is already registered
        """
        user = await self.user_dao.create_user(
            email=email,
            hashed_password=hash_password(password),
            name=name,
            organization_id=organization_id,
            role=role,
            image=image,
            image_cld_pub_id=image_cld_pub_id,
        )
        logger.info("Registered %s user %s in organization %s", role.value, user.id, organization_id)
        return user

    async def sign_up(self, request: SignUpRequest) -> User:
        """
        Plain sign-up: join an existing organization as teacher or student.

        Raises:
            AuthorizationError: If the admin role is requested
            ValidationError: If organizationId is missing
            OrganizationNotFoundError: If the organization doesn't exist
            ResourceAlreadyExistsError: If the email is already registered
        """
        role = request.role or UserRole.STUDENT
        if role == UserRole.ADMIN:
            raise AuthorizationError(message="Admin accounts are created with an organization")

        if not request.organization_id:
            raise ValidationError(
                message="organizationId is required",
                errors=[{"field": "organizationId", "message": "Field required"}],
            )

        if await self.org_dao.get_by_id(request.organization_id) is None:
            raise OrganizationNotFoundError(organization_id=request.organization_id)

        return await self.register_account(
            email=request.email,
            password=request.password,
            name=request.name,
            role=role,
            organization_id=request.organization_id,
            image=request.image,
            image_cld_pub_id=request.image_cld_pub_id,
        )

    async def authenticate(self, email: str, password: str) -> User:
        """
        Check email and password.

        WHY: The same message for unknown email and wrong password prevents
        account enumeration.

        Raises:
            AuthenticationError: On any credential mismatch
        """
        user = await self.user_dao.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.warning("Failed sign-in for %s", email)
            raise AuthenticationError(message="Invalid email or password")
        return user

    def issue_session(self, user: User) -> str:
        return create_session_token(user)
