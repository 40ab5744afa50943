"""
Integration tests for the organization endpoint.
"""

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import OrganizationFactory, UserFactory, auth_headers


class TestGetOrganization:
    async def test_member_reads_own_organization(self, client: AsyncClient, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session, name="Hill Valley High")
        student = await UserFactory.create_student(db_session, org)

        response = await client.get(f"/api/organization/{org.id}", headers=auth_headers(student))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Hill Valley High"
        assert data["type"] == "school"
        assert data["subscriptionStatus"] == "trial"

    async def test_other_organization_is_forbidden(self, client: AsyncClient, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        other = await OrganizationFactory.create(db_session)
        admin = await UserFactory.create_admin(db_session, org)

        response = await client.get(f"/api/organization/{other.id}", headers=auth_headers(admin))

        assert response.status_code == 403

    async def test_requires_authentication(self, client: AsyncClient, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)

        response = await client.get(f"/api/organization/{org.id}")

        assert response.status_code == 401
