"""
Tests for department, subject and class DAOs.

WHY: Codes are unique per organization, and departments/subjects are
restrict-on-delete while dependents exist.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import DependentRowsExistError, ResourceAlreadyExistsError
from classroom.dao.class_model import INVITE_CODE_ALPHABET, INVITE_CODE_LENGTH, ClassDAO, generate_invite_code
from classroom.dao.department import DepartmentDAO, TeacherDepartmentDAO
from classroom.dao.subject import SubjectDAO
from classroom.models.subject import Subject
from tests.factories import (
    ClassFactory,
    DepartmentFactory,
    EnrollmentFactory,
    OrganizationFactory,
    SubjectFactory,
    TenantFactory,
    UserFactory,
)


class TestDepartmentDAO:
    async def test_code_unique_within_organization(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        await DepartmentFactory.create(db_session, org, code="SCI")

        with pytest.raises(ResourceAlreadyExistsError):
            await DepartmentDAO(db_session).create_department(
                organization_id=org.id, code="SCI", name="Science again"
            )

    async def test_same_code_allowed_in_another_organization(self, db_session: AsyncSession):
        org1 = await OrganizationFactory.create(db_session)
        org2 = await OrganizationFactory.create(db_session)
        await DepartmentFactory.create(db_session, org1, code="SCI")

        department = await DepartmentDAO(db_session).create_department(
            organization_id=org2.id, code="SCI", name="Science"
        )

        assert department.id is not None

    async def test_update_to_taken_code_conflicts(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        await DepartmentFactory.create(db_session, org, code="SCI")
        math = await DepartmentFactory.create(db_session, org, code="MATH")

        with pytest.raises(ResourceAlreadyExistsError):
            await DepartmentDAO(db_session).update_department(math, code="SCI")

    async def test_delete_with_subjects_is_refused(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)

        with pytest.raises(DependentRowsExistError) as exc_info:
            await DepartmentDAO(db_session).delete_department(tenant["department"])

        assert exc_info.value.message == "Cannot delete department with existing subjects"

    async def test_foreign_key_violation_maps_to_dependent_rows(self, db_session: AsyncSession):
        """The database constraint backs up the pre-check."""
        tenant = await TenantFactory.create(db_session)

        with pytest.raises(DependentRowsExistError):
            await DepartmentDAO(db_session).delete(tenant["department"].id)

    async def test_delete_empty_department(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        department = await DepartmentFactory.create(db_session, org)
        dao = DepartmentDAO(db_session)

        await dao.delete_department(department)

        assert await dao.get_by_id(department.id) is None

    async def test_class_counts_include_empty_departments(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        await DepartmentFactory.create(db_session, tenant["organization"], name="Empty")

        counts = dict(await DepartmentDAO(db_session).class_counts(tenant["organization"].id))

        assert counts[tenant["department"].name] == 1
        assert counts["Empty"] == 0


class TestTeacherDepartmentDAO:
    async def test_assign_and_list(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        dao = TeacherDepartmentDAO(db_session)

        await dao.assign(tenant["teacher"].id, tenant["department"].id)
        teachers = await dao.list_teachers(tenant["department"].id)

        assert [t.id for t in teachers] == [tenant["teacher"].id]

    async def test_assign_twice_conflicts(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        await DepartmentFactory.assign_teacher(db_session, tenant["department"], tenant["teacher"])

        with pytest.raises(ResourceAlreadyExistsError):
            await TeacherDepartmentDAO(db_session).assign(tenant["teacher"].id, tenant["department"].id)

    async def test_unassign_reports_missing(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)

        assert await TeacherDepartmentDAO(db_session).unassign(tenant["teacher"].id, tenant["department"].id) is False


class TestSubjectDAO:
    async def test_delete_with_classes_is_refused(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)

        with pytest.raises(DependentRowsExistError) as exc_info:
            await SubjectDAO(db_session).delete_subject(tenant["subject"])

        assert exc_info.value.message == "Cannot delete subject with existing classes"

    async def test_list_filters_by_department_name(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        science = await DepartmentFactory.create(db_session, org, name="Science")
        arts = await DepartmentFactory.create(db_session, org, name="Arts")
        physics = await SubjectFactory.create(db_session, science, name="Physics")
        await SubjectFactory.create(db_session, arts, name="Painting")
        subjects, total = await SubjectDAO(db_session).list_subjects(
            [Subject.organization_id == org.id], department="sci"
        )

        assert total == 1
        assert subjects[0].id == physics.id
        assert subjects[0].department.name == "Science"


class TestClassDAO:
    def test_generate_invite_code(self):
        code = generate_invite_code()

        assert len(code) == INVITE_CODE_LENGTH
        assert all(ch in INVITE_CODE_ALPHABET for ch in code)

    async def test_create_class_assigns_invite_code(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)

        class_ = await ClassDAO(db_session).create_class(
            subject_id=tenant["subject"].id,
            teacher_id=tenant["teacher"].id,
            organization_id=tenant["organization"].id,
            name="Algebra",
            capacity=10,
        )

        assert len(class_.invite_code) == INVITE_CODE_LENGTH

    async def test_get_by_invite_code_is_case_insensitive(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        class_ = await ClassFactory.create(db_session, tenant["subject"], tenant["teacher"], invite_code="ABC12345")

        found = await ClassDAO(db_session).get_by_invite_code("abc12345")

        assert found.id == class_.id

    async def test_enrollment_counts_and_capacity_rows(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session, capacity=2)
        other = await UserFactory.create_student(db_session, tenant["organization"])
        await EnrollmentFactory.create(db_session, tenant["student"], tenant["class"])
        await EnrollmentFactory.create(db_session, other, tenant["class"])
        dao = ClassDAO(db_session)

        assert await dao.enrollment_counts([tenant["class"].id]) == {tenant["class"].id: 2}
        assert await dao.capacity_rows(tenant["organization"].id) == [(2, 2)]
        assert await dao.enrollment_counts([]) == {}
