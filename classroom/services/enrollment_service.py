"""
Enrollment service.

WHAT: Enrolls and unenrolls students, directly or by invite code.

WHY: Capacity is a check-then-act rule. Counting enrollments and inserting
the new one must not interleave with another request for the same class,
otherwise two students can take the last seat.

HOW: The class row is locked (SELECT ... FOR UPDATE) inside the request
transaction before anything is counted. The lock is held until the request
commits or rolls back, so concurrent enrollments into one class serialize.
The composite primary key rejects duplicate pairs as a final guard.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import (
    CapacityExceededError,
    ClassNotFoundError,
    EnrollmentNotFoundError,
    ResourceAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
)
from classroom.core.policy import Action, Identity, Resource, enforce, require_in_tenant
from classroom.dao.class_model import ClassDAO
from classroom.dao.enrollment import EnrollmentDAO
from classroom.dao.user import UserDAO
from classroom.models.class_model import Class
from classroom.models.enrollment import Enrollment
from classroom.models.user import User, UserRole

logger = logging.getLogger(__name__)


class EnrollmentService:
    """
    Service for enrollment writes.

    Example:
        service = EnrollmentService(db)
        enrollment = await service.enroll(identity, student_id, class_id)
    """

    def __init__(self, session: AsyncSession):
        self.class_dao = ClassDAO(session)
        self.enrollment_dao = EnrollmentDAO(session)
        self.user_dao = UserDAO(User, session)

    async def _locked_class(self, identity: Identity, class_id: int) -> Class:
        class_ = await self.class_dao.get_for_update(class_id)
        return require_in_tenant(identity, class_, ClassNotFoundError, class_id=class_id)

    async def _student(self, identity: Identity, student_id: str) -> User:
        student = await self.user_dao.get_in_org(student_id, identity.organization_id)
        if student is None:
            raise UserNotFoundError(student_id=student_id)
        if student.role != UserRole.STUDENT:
            raise ValidationError(
                message="Only students can be enrolled in a class",
                errors=[{"field": "studentId", "message": "User is not a student"}],
            )
        return student

    async def enroll(self, identity: Identity, student_id: str, class_id: int) -> Enrollment:
        """
        Enroll a student into a class.

        Raises:
            ClassNotFoundError: Class missing or in another organization
            AuthorizationError: Caller may not enroll this student here
            UserNotFoundError: Student missing or in another organization
            ResourceAlreadyExistsError: Student already enrolled
            CapacityExceededError: Class is full
        """
        class_ = await self._locked_class(identity, class_id)
        enforce(
            identity,
            Action.CREATE,
            Resource.ENROLLMENT,
            target=class_,
            payload={"student_id": student_id},
        )
        await self._student(identity, student_id)

        if await self.enrollment_dao.get_pair(student_id, class_id) is not None:
            raise ResourceAlreadyExistsError(
                message="Student already enrolled",
                resource_type="Enrollment",
                student_id=student_id,
                class_id=class_id,
            )

        enrolled = await self.enrollment_dao.count_for_class(class_id)
        if enrolled >= class_.capacity:
            logger.info("Class %s is full (%s/%s)", class_id, enrolled, class_.capacity)
            raise CapacityExceededError(
                message="Class is full",
                class_id=class_id,
                capacity=class_.capacity,
            )

        enrollment = await self.enrollment_dao.create(student_id=student_id, class_id=class_id)
        logger.info("Enrolled student %s in class %s", student_id, class_id)
        return enrollment

    async def join_by_code(self, identity: Identity, invite_code: str) -> Enrollment:
        """
        Enroll the calling student using a class invite code.

        Raises:
            ClassNotFoundError: No class with this code in the caller's organization
        """
        class_: Optional[Class] = await self.class_dao.get_by_invite_code(invite_code.strip())
        require_in_tenant(identity, class_, ClassNotFoundError, invite_code=invite_code)
        return await self.enroll(identity, identity.user_id, class_.id)

    async def unenroll(self, identity: Identity, student_id: str, class_id: int) -> None:
        """
        Remove a student from a class.

        Raises:
            ClassNotFoundError: Class missing or in another organization
            AuthorizationError: Caller may not manage this enrollment
            EnrollmentNotFoundError: Student was not enrolled
        """
        class_ = await self._locked_class(identity, class_id)
        enforce(
            identity,
            Action.DELETE,
            Resource.ENROLLMENT,
            target=class_,
            payload={"student_id": student_id},
        )
        if not await self.enrollment_dao.delete_pair(student_id, class_id):
            raise EnrollmentNotFoundError(student_id=student_id, class_id=class_id)
        logger.info("Unenrolled student %s from class %s", student_id, class_id)
