"""
Tests for enrollment writes: capacity, duplicates and who may enroll whom.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import (
    AuthorizationError,
    CapacityExceededError,
    ClassNotFoundError,
    EnrollmentNotFoundError,
    ResourceAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
)
from classroom.core.policy import Identity
from classroom.dao.enrollment import EnrollmentDAO
from classroom.services.enrollment_service import EnrollmentService
from tests.factories import (
    EnrollmentFactory,
    TenantFactory,
    UserFactory,
)


class TestEnroll:
    async def test_admin_enrolls_student(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        admin = Identity.from_user(tenant["admin"])

        enrollment = await EnrollmentService(db_session).enroll(
            admin, tenant["student"].id, tenant["class"].id
        )

        assert enrollment.student_id == tenant["student"].id
        assert enrollment.class_id == tenant["class"].id

    async def test_capacity_is_enforced(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session, capacity=1)
        other = await UserFactory.create_student(db_session, tenant["organization"])
        service = EnrollmentService(db_session)
        admin = Identity.from_user(tenant["admin"])

        await service.enroll(admin, tenant["student"].id, tenant["class"].id)
        with pytest.raises(CapacityExceededError) as exc_info:
            await service.enroll(admin, other.id, tenant["class"].id)

        assert exc_info.value.message == "Class is full"
        assert exc_info.value.status_code == 400
        assert await EnrollmentDAO(db_session).count_for_class(tenant["class"].id) == 1

    async def test_duplicate_checked_before_capacity(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session, capacity=1)
        await EnrollmentFactory.create(db_session, tenant["student"], tenant["class"])

        with pytest.raises(ResourceAlreadyExistsError) as exc_info:
            await EnrollmentService(db_session).enroll(
                Identity.from_user(tenant["admin"]), tenant["student"].id, tenant["class"].id
            )

        assert exc_info.value.message == "Student already enrolled"

    async def test_student_enrolls_only_themselves(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        other = await UserFactory.create_student(db_session, tenant["organization"])
        service = EnrollmentService(db_session)
        student = Identity.from_user(tenant["student"])

        await service.enroll(student, tenant["student"].id, tenant["class"].id)
        with pytest.raises(AuthorizationError):
            await service.enroll(student, other.id, tenant["class"].id)

    async def test_teacher_enrolls_into_own_class_only(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        outsider = await UserFactory.create_teacher(db_session, tenant["organization"])

        with pytest.raises(AuthorizationError):
            await EnrollmentService(db_session).enroll(
                Identity.from_user(outsider), tenant["student"].id, tenant["class"].id
            )

        enrollment = await EnrollmentService(db_session).enroll(
            Identity.from_user(tenant["teacher"]), tenant["student"].id, tenant["class"].id
        )
        assert enrollment.class_id == tenant["class"].id

    async def test_only_students_can_be_enrolled(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)

        with pytest.raises(ValidationError):
            await EnrollmentService(db_session).enroll(
                Identity.from_user(tenant["admin"]), tenant["teacher"].id, tenant["class"].id
            )

    async def test_class_in_other_tenant_is_not_found(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        other = await TenantFactory.create(db_session)

        with pytest.raises(ClassNotFoundError):
            await EnrollmentService(db_session).enroll(
                Identity.from_user(tenant["admin"]), tenant["student"].id, other["class"].id
            )

    async def test_student_in_other_tenant_is_not_found(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        other = await TenantFactory.create(db_session)

        with pytest.raises(UserNotFoundError):
            await EnrollmentService(db_session).enroll(
                Identity.from_user(tenant["admin"]), other["student"].id, tenant["class"].id
            )


class TestJoinByCode:
    async def test_join_with_invite_code(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        code = tenant["class"].invite_code

        enrollment = await EnrollmentService(db_session).join_by_code(
            Identity.from_user(tenant["student"]), f"  {code.lower()} "
        )

        assert enrollment.student_id == tenant["student"].id

    async def test_unknown_code(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)

        with pytest.raises(ClassNotFoundError):
            await EnrollmentService(db_session).join_by_code(
                Identity.from_user(tenant["student"]), "NOPE0000"
            )

    async def test_code_from_other_tenant(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        other = await TenantFactory.create(db_session)

        with pytest.raises(ClassNotFoundError):
            await EnrollmentService(db_session).join_by_code(
                Identity.from_user(tenant["student"]), other["class"].invite_code
            )


class TestUnenroll:
    async def test_unenroll(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)
        await EnrollmentFactory.create(db_session, tenant["student"], tenant["class"])

        await EnrollmentService(db_session).unenroll(
            Identity.from_user(tenant["student"]), tenant["student"].id, tenant["class"].id
        )

        assert await EnrollmentDAO(db_session).get_pair(tenant["student"].id, tenant["class"].id) is None

    async def test_unenroll_missing(self, db_session: AsyncSession):
        tenant = await TenantFactory.create(db_session)

        with pytest.raises(EnrollmentNotFoundError):
            await EnrollmentService(db_session).unenroll(
                Identity.from_user(tenant["admin"]), tenant["student"].id, tenant["class"].id
            )
