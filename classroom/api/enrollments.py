"""
Enrollment API endpoints.

WHY: Students join classes (directly or with an invite code); admins and
the class teacher can add or remove any student. Capacity and duplicate
checks live in EnrollmentService so both join paths share them.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.deps import get_current_identity
from classroom.core.exceptions import ClassNotFoundError
from classroom.core.policy import Action, Identity, Resource, enforce, require_in_tenant
from classroom.db.session import get_db
from classroom.dao.class_model import ClassDAO
from classroom.dao.enrollment import EnrollmentDAO
from classroom.schemas.common import DataResponse, MessageResponse
from classroom.schemas.enrollment import EnrollmentCreate, EnrollmentResponse, JoinClassRequest
from classroom.schemas.user import UserResponse
from classroom.services.enrollment_service import EnrollmentService


router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.get(
    "/class/{class_id}",
    response_model=DataResponse[List[UserResponse]],
    summary="List students in a class",
)
async def list_enrolled_students(
    class_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[List[UserResponse]]:
    class_ = await ClassDAO(db).get_by_id(class_id)
    require_in_tenant(identity, class_, ClassNotFoundError, class_id=class_id)
    enforce(identity, Action.READ_LIST, Resource.ENROLLMENT, target=class_)

    students = await EnrollmentDAO(db).list_students(class_id)
    return DataResponse(data=[UserResponse.model_validate(s) for s in students])


@router.post(
    "",
    response_model=DataResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a student",
    description="Enroll a student into a class. Students may only enroll themselves.",
)
async def create_enrollment(
    data: EnrollmentCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[EnrollmentResponse]:
    """
    Enroll a student.

    Raises:
        ClassNotFoundError / UserNotFoundError (404): Outside the organization
        AuthorizationError (403): Caller may not enroll this student
        ResourceAlreadyExistsError (409): Already enrolled
        CapacityExceededError (400): Class is full
    """
    enrollment = await EnrollmentService(db).enroll(identity, data.student_id, data.class_id)
    return DataResponse(data=EnrollmentResponse.model_validate(enrollment))


@router.post(
    "/join",
    response_model=DataResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Join a class by invite code",
)
async def join_class(
    data: JoinClassRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[EnrollmentResponse]:
    enrollment = await EnrollmentService(db).join_by_code(identity, data.invite_code)
    return DataResponse(data=EnrollmentResponse.model_validate(enrollment))


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Unenroll a student",
)
async def delete_enrollment(
    student_id: str = Query(..., alias="studentId"),
    class_id: int = Query(..., alias="classId"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await EnrollmentService(db).unenroll(identity, student_id, class_id)
    return MessageResponse(message="Student unenrolled successfully")
