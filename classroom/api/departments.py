"""
Department API endpoints.

WHY: Departments are the top of each organization's catalog. Reads are open
to every member of the organization; writes, including teacher
assignments, are admin only.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.params import ListParams, list_params
from classroom.core.deps import get_current_identity
from classroom.core.exceptions import (
    DepartmentNotFoundError,
    ResourceNotFoundError,
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
from classroom.dao.department import DepartmentDAO, TeacherDepartmentDAO
from classroom.dao.user import UserDAO
from classroom.models.department import Department
from classroom.models.user import User, UserRole
from classroom.schemas.common import DataResponse, ListResponse, MessageResponse, Pagination
from classroom.schemas.department import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    TeacherAssignmentRequest,
    TeacherAssignmentResponse,
)
from classroom.schemas.user import UserResponse


router = APIRouter(prefix="/departments", tags=["departments"])


async def load_department(identity: Identity, department_id: int, dao: DepartmentDAO) -> Department:
    """Fetch a department visible to the caller or raise 404."""
    department = await dao.get_scoped(department_id, *scope_filter(identity, Resource.DEPARTMENT))
    if not department:
        raise DepartmentNotFoundError(department_id=department_id)
    return department


@router.get(
    "",
    response_model=ListResponse[DepartmentResponse],
    summary="List departments",
    description="List the organization's departments with search, paging and sorting",
)
async def list_departments(
    search: str | None = Query(None, description="Match name or code"),
    params: ListParams = Depends(list_params),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> ListResponse[DepartmentResponse]:
    enforce(identity, Action.READ_LIST, Resource.DEPARTMENT)

    departments, total = await DepartmentDAO(db).list_departments(
        scope_filter(identity, Resource.DEPARTMENT),
        search=search,
        page=params.page,
        limit=params.limit,
        sort_field=params.sort_field,
        sort_order=params.sort_order,
    )

    return ListResponse(
        data=[DepartmentResponse.model_validate(d) for d in departments],
        pagination=Pagination.build(params.page, params.limit, total),
    )


@router.get(
    "/{department_id}",
    response_model=DataResponse[DepartmentResponse],
    summary="Get department",
)
async def get_department(
    department_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[DepartmentResponse]:
    department = await load_department(identity, department_id, DepartmentDAO(db))
    enforce(identity, Action.READ_ONE, Resource.DEPARTMENT, target=department)
    return DataResponse(data=DepartmentResponse.model_validate(department))


@router.post(
    "",
    response_model=DataResponse[DepartmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create department",
    description="Create a department in the caller's organization (admin only)",
)
async def create_department(
    data: DepartmentCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[DepartmentResponse]:
    """
    Create department.

    Raises:
        InsufficientPermissionsError (403): If caller is not an admin
        ResourceAlreadyExistsError (409): If the code is taken in the organization
    """
    payload = data.model_dump()
    enforce(identity, Action.CREATE, Resource.DEPARTMENT, payload=payload)

    department = await DepartmentDAO(db).create_department(**scoped_payload(identity, payload))
    return DataResponse(data=DepartmentResponse.model_validate(department))


@router.put(
    "/{department_id}",
    response_model=DataResponse[DepartmentResponse],
    summary="Update department",
)
async def update_department(
    department_id: int,
    data: DepartmentUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[DepartmentResponse]:
    dao = DepartmentDAO(db)
    department = await load_department(identity, department_id, dao)

    payload = data.model_dump(exclude_unset=True)
    enforce(identity, Action.UPDATE, Resource.DEPARTMENT, target=department, payload=payload)

    department = await dao.update_department(department, **payload)
    return DataResponse(data=DepartmentResponse.model_validate(department))


@router.delete(
    "/{department_id}",
    response_model=DataResponse[DepartmentResponse],
    summary="Delete department",
    description="Delete a department. Fails while subjects still reference it.",
)
async def delete_department(
    department_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[DepartmentResponse]:
    """
    Delete department.

    Raises:
        DependentRowsExistError (400): If the department has subjects
    """
    dao = DepartmentDAO(db)
    department = await load_department(identity, department_id, dao)
    enforce(identity, Action.DELETE, Resource.DEPARTMENT, target=department)

    deleted = DepartmentResponse.model_validate(department)
    await dao.delete_department(department)
    return DataResponse(data=deleted)


# ============================================================================
# Teacher assignments
# ============================================================================


@router.get(
    "/{department_id}/teachers",
    response_model=DataResponse[list[UserResponse]],
    summary="List department teachers",
)
async def list_department_teachers(
    department_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[list[UserResponse]]:
    department = await load_department(identity, department_id, DepartmentDAO(db))
    enforce(identity, Action.READ_ONE, Resource.DEPARTMENT, target=department)

    teachers = await TeacherDepartmentDAO(db).list_teachers(department.id)
    return DataResponse(data=[UserResponse.model_validate(t) for t in teachers])


@router.post(
    "/{department_id}/teachers",
    response_model=DataResponse[TeacherAssignmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Assign teacher to department",
)
async def assign_teacher(
    department_id: int,
    data: TeacherAssignmentRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[TeacherAssignmentResponse]:
    """
    Assign a teacher to a department (admin only).

    Raises:
        UserNotFoundError (404): Teacher not in the caller's organization
        ValidationError (400): The user is not a teacher
        ResourceAlreadyExistsError (409): Already assigned
    """
    department = await load_department(identity, department_id, DepartmentDAO(db))
    enforce(identity, Action.UPDATE, Resource.DEPARTMENT, target=department)

    teacher = await UserDAO(User, db).get_by_id(data.teacher_id)
    require_in_tenant(identity, teacher, UserNotFoundError, teacher_id=data.teacher_id)
    if teacher.role != UserRole.TEACHER:
        raise ValidationError(
            message="Only teachers can be assigned to departments",
            errors=[{"field": "teacherId", "message": "User is not a teacher"}],
        )

    assignment = await TeacherDepartmentDAO(db).assign(teacher.id, department.id)
    return DataResponse(data=TeacherAssignmentResponse.model_validate(assignment))


@router.delete(
    "/{department_id}/teachers/{teacher_id}",
    response_model=MessageResponse,
    summary="Remove teacher from department",
)
async def unassign_teacher(
    department_id: int,
    teacher_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    department = await load_department(identity, department_id, DepartmentDAO(db))
    enforce(identity, Action.UPDATE, Resource.DEPARTMENT, target=department)

    if not await TeacherDepartmentDAO(db).unassign(teacher_id, department.id):
        raise ResourceNotFoundError(
            message="Teacher is not assigned to this department",
            teacher_id=teacher_id,
            department_id=department_id,
        )
    return MessageResponse(message="Teacher removed from department")
