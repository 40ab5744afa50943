"""
Class API endpoints.

WHY: Classes are where teachers and students meet. Everyone in the
organization can browse them; admins manage any class, teachers only their
own. Every response carries the current enrollment count.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.params import ListParams, list_params
from classroom.core.config import settings
from classroom.core.deps import get_current_identity
from classroom.core.exceptions import (
    ClassNotFoundError,
    SubjectNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from classroom.core.policy import (
    Action,
    Identity,
    Resource,
    enforce,
    require_in_tenant,
    scope_filter,
    scoped_payload,
)
from classroom.db.session import get_db
from classroom.dao.class_model import ClassDAO
from classroom.dao.enrollment import EnrollmentDAO
from classroom.dao.subject import SubjectDAO
from classroom.dao.user import UserDAO
from classroom.models.class_model import Class, ClassStatus
from classroom.models.user import User, UserRole
from classroom.schemas.class_model import ClassCreate, ClassResponse, ClassUpdate
from classroom.schemas.common import DataResponse, ListResponse, Pagination
from classroom.schemas.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes", tags=["classes"])


def to_response(class_: Class, enrolled_count: int) -> ClassResponse:
    return ClassResponse.model_validate(class_).model_copy(update={"enrolled_count": enrolled_count})


async def load_class(identity: Identity, class_id: int, dao: ClassDAO) -> Class:
    class_ = await dao.get_with_details(class_id, *scope_filter(identity, Resource.CLASS))
    if not class_:
        raise ClassNotFoundError(class_id=class_id)
    return class_


async def check_references(identity: Identity, payload: Dict[str, Any], db: AsyncSession) -> None:
    """
    Validate the subject and teacher a class points at.

    Raises:
        SubjectNotFoundError: Subject not in the caller's organization
        UserNotFoundError: Teacher not in the caller's organization
        ValidationError: The referenced user is not a teacher
    """
    subject_id = payload.get("subject_id")
    if subject_id is not None:
        subject = await SubjectDAO(db).get_by_id(subject_id)
        require_in_tenant(identity, subject, SubjectNotFoundError, subject_id=subject_id)

    teacher_id = payload.get("teacher_id")
    if teacher_id is not None:
        teacher = await UserDAO(User, db).get_in_org(teacher_id, identity.organization_id)
        if teacher is None:
            raise UserNotFoundError(teacher_id=teacher_id)
        if teacher.role != UserRole.TEACHER:
            raise ValidationError(
                message="Classes can only be assigned to teachers",
                errors=[{"field": "teacherId", "message": "User is not a teacher"}],
            )


@router.get(
    "",
    response_model=ListResponse[ClassResponse],
    summary="List classes",
    description="List classes with search, subject/teacher/status filters, paging and sorting",
)
async def list_classes(
    search: str | None = Query(None, description="Match name or invite code"),
    subject_id: int | None = Query(None, alias="subjectId"),
    teacher_id: str | None = Query(None, alias="teacherId"),
    class_status: ClassStatus | None = Query(None, alias="status"),
    params: ListParams = Depends(list_params),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> ListResponse[ClassResponse]:
    enforce(identity, Action.READ_LIST, Resource.CLASS)

    dao = ClassDAO(db)
    classes, total = await dao.list_classes(
        scope_filter(identity, Resource.CLASS),
        search=search,
        subject_id=subject_id,
        teacher_id=teacher_id,
        status=class_status,
        page=params.page,
        limit=params.limit,
        sort_field=params.sort_field,
        sort_order=params.sort_order,
    )
    counts = await dao.enrollment_counts([c.id for c in classes])

    return ListResponse(
        data=[to_response(c, counts.get(c.id, 0)) for c in classes],
        pagination=Pagination.build(params.page, params.limit, total),
    )


@router.get(
    "/{class_id}",
    response_model=DataResponse[ClassResponse],
    summary="Get class",
)
async def get_class(
    class_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[ClassResponse]:
    dao = ClassDAO(db)
    class_ = await load_class(identity, class_id, dao)
    enforce(identity, Action.READ_ONE, Resource.CLASS, target=class_)
    return DataResponse(data=to_response(class_, await dao.enrollment_count(class_id)))


@router.get(
    "/{class_id}/enrollments",
    response_model=DataResponse[List[UserResponse]],
    summary="List enrolled students",
)
async def list_class_students(
    class_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[List[UserResponse]]:
    class_ = await load_class(identity, class_id, ClassDAO(db))
    enforce(identity, Action.READ_LIST, Resource.ENROLLMENT, target=class_)
    students = await EnrollmentDAO(db).list_students(class_id)
    return DataResponse(data=[UserResponse.model_validate(s) for s in students])


@router.post(
    "",
    response_model=DataResponse[ClassResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
    description=(
        "Create a class. Teachers create classes for themselves; admins must "
        "name the teacher. An invite code is generated."
    ),
)
async def create_class(
    data: ClassCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[ClassResponse]:
    """
    Create class.

    Raises:
        InsufficientPermissionsError (403): Students cannot create classes
        AuthorizationError (403): Teacher named another teacher
        SubjectNotFoundError / UserNotFoundError (404): Reference outside the organization
        ValidationError (400): Missing or non-teacher teacherId
    """
    payload = data.model_dump()
    enforce(identity, Action.CREATE, Resource.CLASS, payload=payload)

    if payload["teacher_id"] is None:
        if not identity.is_teacher:
            raise ValidationError(
                message="teacherId is required",
                errors=[{"field": "teacherId", "message": "Field required"}],
            )
        payload["teacher_id"] = identity.user_id
    if payload["capacity"] is None:
        payload["capacity"] = settings.DEFAULT_CLASS_CAPACITY

    await check_references(identity, payload, db)

    dao = ClassDAO(db)
    class_ = await dao.create_class(**scoped_payload(identity, payload))
    logger.info("Created class %s (invite code %s)", class_.id, class_.invite_code)

    class_ = await dao.get_with_details(class_.id)
    return DataResponse(data=to_response(class_, 0))


@router.put(
    "/{class_id}",
    response_model=DataResponse[ClassResponse],
    summary="Update class",
)
async def update_class(
    class_id: int,
    data: ClassUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[ClassResponse]:
    dao = ClassDAO(db)
    class_ = await load_class(identity, class_id, dao)

    payload = data.model_dump(exclude_unset=True)
    enforce(identity, Action.UPDATE, Resource.CLASS, target=class_, payload=payload)

    # Required columns cannot be cleared
    for field in ("subject_id", "teacher_id", "name", "capacity", "status"):
        if field in payload and payload[field] is None:
            del payload[field]

    await check_references(identity, payload, db)

    if "capacity" in payload:
        # Enrollment takes the same row lock before counting
        await dao.get_for_update(class_id)
        enrolled = await EnrollmentDAO(db).count_for_class(class_id)
        if payload["capacity"] < enrolled:
            raise ValidationError(
                message=f"Capacity cannot be lower than the {enrolled} students already enrolled",
                errors=[{"field": "capacity", "message": f"Must be at least {enrolled}"}],
            )

    await dao.update(class_id, **payload)
    class_ = await dao.get_with_details(class_id)
    return DataResponse(data=to_response(class_, await dao.enrollment_count(class_id)))


@router.delete(
    "/{class_id}",
    response_model=DataResponse[ClassResponse],
    summary="Delete class",
    description="Delete a class and its enrollments",
)
async def delete_class(
    class_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[ClassResponse]:
    dao = ClassDAO(db)
    class_ = await load_class(identity, class_id, dao)
    enforce(identity, Action.DELETE, Resource.CLASS, target=class_)

    deleted = to_response(class_, await dao.enrollment_count(class_id))
    await dao.delete(class_id)
    return DataResponse(data=deleted)
