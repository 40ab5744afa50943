"""
Integration tests for user management.

WHY: Admin rows are invisible through this resource, nobody can be
promoted to admin, and a teacher with classes cannot be deleted.
"""

from httpx import AsyncClient

from tests.factories import DepartmentFactory, EnrollmentFactory, UserFactory


class TestUserReads:
    async def test_list_hides_admins_and_other_tenants(self, client: AsyncClient, tenant, other_tenant):
        response = await client.get("/api/users", headers=tenant.admin)

        assert response.status_code == 200
        ids = {u["id"] for u in response.json()["data"]}
        assert ids == {tenant.teacher_id, tenant.student_id}

    async def test_filter_by_role(self, client: AsyncClient, tenant):
        response = await client.get("/api/users", params={"role": "teacher"}, headers=tenant.admin)

        assert [u["id"] for u in response.json()["data"]] == [tenant.teacher_id]

    async def test_search(self, client: AsyncClient, db_session, tenant):
        await UserFactory.create_student(db_session, tenant.rows["organization"], name="Zelda Zimmer")

        response = await client.get("/api/users", params={"search": "zimmer"}, headers=tenant.teacher)

        assert [u["name"] for u in response.json()["data"]] == ["Zelda Zimmer"]

    async def test_get_admin_is_hidden_from_others(self, client: AsyncClient, tenant):
        as_teacher = await client.get(f"/api/users/{tenant.admin_id}", headers=tenant.teacher)
        as_self = await client.get(f"/api/users/{tenant.admin_id}", headers=tenant.admin)

        assert as_teacher.status_code == 404
        assert as_self.status_code == 200

    async def test_get_user_in_other_tenant(self, client: AsyncClient, tenant, other_tenant):
        response = await client.get(f"/api/users/{other_tenant.student_id}", headers=tenant.admin)

        assert response.status_code == 404


class TestUserWrites:
    async def test_admin_updates_student(self, client: AsyncClient, tenant):
        response = await client.put(
            f"/api/users/{tenant.student_id}",
            json={"name": "Renamed Student", "role": "teacher"},
            headers=tenant.admin,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Renamed Student"
        assert data["role"] == "teacher"
        assert data["organizationId"] == tenant.org_id

    async def test_cannot_promote_to_admin(self, client: AsyncClient, tenant):
        response = await client.put(
            f"/api/users/{tenant.student_id}", json={"role": "admin"}, headers=tenant.admin
        )

        assert response.status_code == 403

    async def test_teacher_cannot_update(self, client: AsyncClient, tenant):
        response = await client.put(
            f"/api/users/{tenant.student_id}", json={"name": "X"}, headers=tenant.teacher
        )

        assert response.status_code == 403

    async def test_organization_cannot_change(self, client: AsyncClient, tenant, other_tenant):
        response = await client.put(
            f"/api/users/{tenant.student_id}",
            json={"organizationId": other_tenant.org_id},
            headers=tenant.admin,
        )

        assert response.status_code == 200
        assert response.json()["data"]["organizationId"] == tenant.org_id

    async def test_email_taken(self, client: AsyncClient, db_session, tenant):
        other = await UserFactory.create_student(db_session, tenant.rows["organization"])
        other_email = other.email

        response = await client.put(
            f"/api/users/{tenant.student_id}", json={"email": other_email}, headers=tenant.admin
        )

        assert response.status_code == 409

    async def test_teacher_with_classes_keeps_role(self, client: AsyncClient, tenant):
        response = await client.put(
            f"/api/users/{tenant.teacher_id}", json={"role": "student"}, headers=tenant.admin
        )
        class_ = await client.get(f"/api/classes/{tenant.class_id}", headers=tenant.admin)
        user = await client.get(f"/api/users/{tenant.teacher_id}", headers=tenant.admin)

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot change the role of a teacher who is assigned to classes"
        assert class_.json()["data"]["teacherId"] == tenant.teacher_id
        assert user.json()["data"]["role"] == "teacher"

    async def test_former_teacher_leaves_departments(self, client: AsyncClient, db_session, tenant):
        teacher = await UserFactory.create_teacher(db_session, tenant.rows["organization"])
        await DepartmentFactory.assign_teacher(db_session, tenant.rows["department"], teacher)
        teacher_id = teacher.id

        response = await client.put(f"/api/users/{teacher_id}", json={"role": "student"}, headers=tenant.admin)
        teachers = await client.get(f"/api/departments/{tenant.department_id}/teachers", headers=tenant.admin)

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "student"
        assert teachers.json()["data"] == []

    async def test_enrolled_student_keeps_role(self, client: AsyncClient, db_session, tenant):
        await EnrollmentFactory.create(db_session, tenant.rows["student"], tenant.rows["class"])

        response = await client.put(
            f"/api/users/{tenant.student_id}", json={"role": "teacher"}, headers=tenant.admin
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot change the role of a student who is enrolled in classes"

    async def test_delete_student(self, client: AsyncClient, tenant):
        response = await client.delete(f"/api/users/{tenant.student_id}", headers=tenant.admin)
        again = await client.get(f"/api/users/{tenant.student_id}", headers=tenant.admin)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == tenant.student_id
        assert again.status_code == 404

    async def test_delete_teacher_with_classes(self, client: AsyncClient, tenant):
        response = await client.delete(f"/api/users/{tenant.teacher_id}", headers=tenant.admin)

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete a teacher who is assigned to classes"

    async def test_admin_row_cannot_be_deleted(self, client: AsyncClient, tenant):
        response = await client.delete(f"/api/users/{tenant.admin_id}", headers=tenant.admin)

        assert response.status_code == 404
