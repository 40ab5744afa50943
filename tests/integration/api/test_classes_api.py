"""
Integration tests for class endpoints.

WHY: Teachers manage only their own classes, admins must name the teacher,
references must stay inside the organization, and every class response
carries the live enrollment count.
"""

from httpx import AsyncClient

from classroom.core.config import settings
from tests.factories import ClassFactory, EnrollmentFactory, UserFactory, auth_headers


class TestClassReads:
    async def test_list_with_counts(self, client: AsyncClient, db_session, tenant, other_tenant):
        await EnrollmentFactory.create(db_session, tenant.rows["student"], tenant.rows["class"])

        response = await client.get("/api/classes", headers=tenant.student)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [c["id"] for c in data] == [tenant.class_id]
        assert data[0]["enrolledCount"] == 1
        assert data[0]["teacher"]["id"] == tenant.teacher_id
        assert data[0]["subject"]["department"]["id"] == tenant.department_id

    async def test_filters(self, client: AsyncClient, db_session, tenant):
        other_teacher = await UserFactory.create_teacher(db_session, tenant.rows["organization"])
        other_teacher_id = other_teacher.id
        await ClassFactory.create(db_session, tenant.rows["subject"], other_teacher, name="Evening Group")

        by_teacher = await client.get("/api/classes", params={"teacherId": other_teacher_id}, headers=tenant.admin)
        by_search = await client.get("/api/classes", params={"search": "evening"}, headers=tenant.admin)
        by_status = await client.get("/api/classes", params={"status": "archived"}, headers=tenant.admin)

        assert [c["name"] for c in by_teacher.json()["data"]] == ["Evening Group"]
        assert [c["name"] for c in by_search.json()["data"]] == ["Evening Group"]
        assert by_status.json()["data"] == []

    async def test_get_other_tenant_is_not_found(self, client: AsyncClient, tenant, other_tenant):
        response = await client.get(f"/api/classes/{other_tenant.class_id}", headers=tenant.admin)

        assert response.status_code == 404

    async def test_list_class_students(self, client: AsyncClient, db_session, tenant):
        await EnrollmentFactory.create(db_session, tenant.rows["student"], tenant.rows["class"])

        response = await client.get(f"/api/classes/{tenant.class_id}/enrollments", headers=tenant.teacher)

        assert [s["id"] for s in response.json()["data"]] == [tenant.student_id]


class TestClassCreate:
    async def test_teacher_creates_own_class(self, client: AsyncClient, tenant):
        response = await client.post(
            "/api/classes",
            json={"subjectId": tenant.subject_id, "name": "Morning Group"},
            headers=tenant.teacher,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["teacherId"] == tenant.teacher_id
        assert data["capacity"] == settings.DEFAULT_CLASS_CAPACITY
        assert data["status"] == "active"
        assert data["enrolledCount"] == 0
        assert len(data["inviteCode"]) > 0

    async def test_teacher_cannot_assign_someone_else(self, client: AsyncClient, db_session, tenant):
        colleague = await UserFactory.create_teacher(db_session, tenant.rows["organization"])

        response = await client.post(
            "/api/classes",
            json={"subjectId": tenant.subject_id, "name": "Taken Over", "teacherId": colleague.id},
            headers=tenant.teacher,
        )

        assert response.status_code == 403

    async def test_admin_must_name_teacher(self, client: AsyncClient, tenant):
        missing = await client.post(
            "/api/classes",
            json={"subjectId": tenant.subject_id, "name": "Nobody"},
            headers=tenant.admin,
        )
        named = await client.post(
            "/api/classes",
            json={"subjectId": tenant.subject_id, "name": "Somebody", "teacherId": tenant.teacher_id, "capacity": 3},
            headers=tenant.admin,
        )

        assert missing.status_code == 400
        assert named.status_code == 201
        assert named.json()["data"]["capacity"] == 3

    async def test_student_cannot_create(self, client: AsyncClient, tenant):
        response = await client.post(
            "/api/classes",
            json={"subjectId": tenant.subject_id, "name": "Mine"},
            headers=tenant.student,
        )

        assert response.status_code == 403

    async def test_non_teacher_assignee(self, client: AsyncClient, tenant):
        response = await client.post(
            "/api/classes",
            json={"subjectId": tenant.subject_id, "name": "Odd", "teacherId": tenant.student_id},
            headers=tenant.admin,
        )

        assert response.status_code == 400

    async def test_subject_from_other_tenant(self, client: AsyncClient, tenant, other_tenant):
        response = await client.post(
            "/api/classes",
            json={"subjectId": other_tenant.subject_id, "name": "Sneaky", "teacherId": tenant.teacher_id},
            headers=tenant.admin,
        )

        assert response.status_code == 404

    async def test_capacity_must_be_positive(self, client: AsyncClient, tenant):
        response = await client.post(
            "/api/classes",
            json={"subjectId": tenant.subject_id, "name": "Empty", "capacity": 0},
            headers=tenant.teacher,
        )

        assert response.status_code == 400


class TestClassUpdateDelete:
    async def test_teacher_updates_own_class(self, client: AsyncClient, tenant):
        response = await client.put(
            f"/api/classes/{tenant.class_id}",
            json={"name": "Renamed", "status": "inactive", "schedules": [{"day": "Mon", "startTime": "09:00"}]},
            headers=tenant.teacher,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Renamed"
        assert data["status"] == "inactive"
        assert data["schedules"] == [{"day": "Mon", "startTime": "09:00"}]

    async def test_other_teacher_cannot_update(self, client: AsyncClient, db_session, tenant):
        colleague = await UserFactory.create_teacher(db_session, tenant.rows["organization"])
        headers = auth_headers(colleague)

        response = await client.put(f"/api/classes/{tenant.class_id}", json={"name": "Mine now"}, headers=headers)

        assert response.status_code == 403

    async def test_admin_reassigns_teacher(self, client: AsyncClient, db_session, tenant):
        colleague = await UserFactory.create_teacher(db_session, tenant.rows["organization"])
        colleague_id = colleague.id

        response = await client.put(
            f"/api/classes/{tenant.class_id}", json={"teacherId": colleague_id}, headers=tenant.admin
        )

        assert response.status_code == 200
        assert response.json()["data"]["teacherId"] == colleague_id
        assert response.json()["data"]["teacher"]["id"] == colleague_id

    async def test_capacity_cannot_drop_below_enrollment(self, client: AsyncClient, db_session, tenant):
        for _ in range(3):
            student = await UserFactory.create_student(db_session, tenant.rows["organization"])
            await EnrollmentFactory.create(db_session, student, tenant.rows["class"])

        too_small = await client.put(f"/api/classes/{tenant.class_id}", json={"capacity": 1}, headers=tenant.admin)
        exact = await client.put(f"/api/classes/{tenant.class_id}", json={"capacity": 3}, headers=tenant.admin)

        assert too_small.status_code == 400
        assert [e["field"] for e in too_small.json()["details"]["errors"]] == ["capacity"]
        assert exact.status_code == 200
        assert exact.json()["data"]["capacity"] == 3
        assert exact.json()["data"]["enrolledCount"] == 3

    async def test_delete_cascades_enrollments(self, client: AsyncClient, db_session, tenant):
        await EnrollmentFactory.create(db_session, tenant.rows["student"], tenant.rows["class"])

        response = await client.delete(f"/api/classes/{tenant.class_id}", headers=tenant.admin)
        listing = await client.get("/api/classes", headers=tenant.admin)

        assert response.status_code == 200
        assert response.json()["data"]["enrolledCount"] == 1
        assert listing.json()["data"] == []

    async def test_student_cannot_delete(self, client: AsyncClient, tenant):
        response = await client.delete(f"/api/classes/{tenant.class_id}", headers=tenant.student)

        assert response.status_code == 403
