"""
Tests for plain sign-up and credential checks.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    OrganizationNotFoundError,
    ResourceAlreadyExistsError,
    ValidationError,
)
from classroom.models.user import UserRole
from classroom.schemas.auth import SignUpRequest
from classroom.services.identity_service import IdentityService
from tests.factories import DEFAULT_PASSWORD, OrganizationFactory, UserFactory


def plain_request(**overrides) -> SignUpRequest:
    data = {"email": "new@example.com", "password": "SecurePassword123!", "name": "New Person"}
    data.update(overrides)
    return SignUpRequest.model_validate(data)


class TestSignUp:
    async def test_defaults_to_student(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)

        user = await IdentityService(db_session).sign_up(plain_request(organizationId=org.id))

        assert user.role == UserRole.STUDENT
        assert user.organization_id == org.id

    async def test_teacher_role_is_honoured(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)

        user = await IdentityService(db_session).sign_up(plain_request(organizationId=org.id, role="teacher"))

        assert user.role == UserRole.TEACHER

    async def test_admin_role_is_refused(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)

        with pytest.raises(AuthorizationError):
            await IdentityService(db_session).sign_up(plain_request(organizationId=org.id, role="admin"))

    async def test_organization_is_required(self, db_session: AsyncSession):
        with pytest.raises(ValidationError):
            await IdentityService(db_session).sign_up(plain_request())

    async def test_unknown_organization(self, db_session: AsyncSession):
        with pytest.raises(OrganizationNotFoundError):
            await IdentityService(db_session).sign_up(plain_request(organizationId="missing"))

    async def test_duplicate_email_any_case(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        await UserFactory.create_student(db_session, org, email="new@example.com")

        with pytest.raises(ResourceAlreadyExistsError):
            await IdentityService(db_session).sign_up(
                plain_request(email="NEW@example.com", organizationId=org.id)
            )


class TestAuthenticate:
    async def test_valid_credentials(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        user = await UserFactory.create_teacher(db_session, org, email="teach@example.com")

        found = await IdentityService(db_session).authenticate("Teach@Example.com", DEFAULT_PASSWORD)

        assert found.id == user.id

    @pytest.mark.parametrize("email,password", [
        ("teach@example.com", "WrongPassword!"),
        ("nobody@example.com", DEFAULT_PASSWORD),
    ])
    async def test_failures_share_one_message(self, db_session: AsyncSession, email, password):
        org = await OrganizationFactory.create(db_session)
        await UserFactory.create_teacher(db_session, org, email="teach@example.com")

        with pytest.raises(AuthenticationError) as exc_info:
            await IdentityService(db_session).authenticate(email, password)

        assert exc_info.value.message == "Invalid email or password"
