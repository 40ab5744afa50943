"""
Subject API endpoints.

WHY: Subjects hang off departments. Every query is tenant-scoped, and the
department a subject points at must belong to the caller's organization.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.params import ListParams, list_params
from classroom.core.deps import get_current_identity
from classroom.core.exceptions import DepartmentNotFoundError, SubjectNotFoundError
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
from classroom.dao.department import DepartmentDAO
from classroom.dao.subject import SubjectDAO
from classroom.models.subject import Subject
from classroom.schemas.common import DataResponse, ListResponse, Pagination
from classroom.schemas.subject import SubjectCreate, SubjectResponse, SubjectUpdate


router = APIRouter(prefix="/subjects", tags=["subjects"])


async def load_subject(identity: Identity, subject_id: int, dao: SubjectDAO) -> Subject:
    subject = await dao.get_with_department(subject_id, *scope_filter(identity, Resource.SUBJECT))
    if not subject:
        raise SubjectNotFoundError(subject_id=subject_id)
    return subject


async def check_department(identity: Identity, department_id: int, db: AsyncSession) -> None:
    """Reject a departmentId outside the caller's organization."""
    department = await DepartmentDAO(db).get_by_id(department_id)
    require_in_tenant(identity, department, DepartmentNotFoundError, department_id=department_id)


@router.get(
    "",
    response_model=ListResponse[SubjectResponse],
    summary="List subjects",
    description="List subjects with search, department filters, paging and sorting",
)
async def list_subjects(
    search: str | None = Query(None, description="Match name or code"),
    department: str | None = Query(None, description="Match department name"),
    department_id: int | None = Query(None, alias="departmentId"),
    params: ListParams = Depends(list_params),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> ListResponse[SubjectResponse]:
    enforce(identity, Action.READ_LIST, Resource.SUBJECT)

    subjects, total = await SubjectDAO(db).list_subjects(
        scope_filter(identity, Resource.SUBJECT),
        search=search,
        department=department,
        department_id=department_id,
        page=params.page,
        limit=params.limit,
        sort_field=params.sort_field,
        sort_order=params.sort_order,
    )

    return ListResponse(
        data=[SubjectResponse.model_validate(s) for s in subjects],
        pagination=Pagination.build(params.page, params.limit, total),
    )


@router.get(
    "/{subject_id}",
    response_model=DataResponse[SubjectResponse],
    summary="Get subject",
)
async def get_subject(
    subject_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[SubjectResponse]:
    subject = await load_subject(identity, subject_id, SubjectDAO(db))
    enforce(identity, Action.READ_ONE, Resource.SUBJECT, target=subject)
    return DataResponse(data=SubjectResponse.model_validate(subject))


@router.post(
    "",
    response_model=DataResponse[SubjectResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create subject",
    description="Create a subject under one of the organization's departments (admin only)",
)
async def create_subject(
    data: SubjectCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[SubjectResponse]:
    """
    Create subject.

    Raises:
        InsufficientPermissionsError (403): If caller is not an admin
        DepartmentNotFoundError (404): Department not in the caller's organization
        ResourceAlreadyExistsError (409): Code taken in the organization
    """
    payload = data.model_dump()
    enforce(identity, Action.CREATE, Resource.SUBJECT, payload=payload)
    await check_department(identity, data.department_id, db)

    dao = SubjectDAO(db)
    subject = await dao.create_subject(**scoped_payload(identity, payload))
    subject = await dao.get_with_department(subject.id)
    return DataResponse(data=SubjectResponse.model_validate(subject))


@router.put(
    "/{subject_id}",
    response_model=DataResponse[SubjectResponse],
    summary="Update subject",
)
async def update_subject(
    subject_id: int,
    data: SubjectUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[SubjectResponse]:
    dao = SubjectDAO(db)
    subject = await load_subject(identity, subject_id, dao)

    payload = data.model_dump(exclude_unset=True)
    enforce(identity, Action.UPDATE, Resource.SUBJECT, target=subject, payload=payload)
    if payload.get("department_id") is not None:
        await check_department(identity, payload["department_id"], db)

    await dao.update_subject(subject, **payload)
    subject = await dao.get_with_department(subject_id)
    return DataResponse(data=SubjectResponse.model_validate(subject))


@router.delete(
    "/{subject_id}",
    response_model=DataResponse[SubjectResponse],
    summary="Delete subject",
    description="Delete a subject. Fails while classes still reference it.",
)
async def delete_subject(
    subject_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[SubjectResponse]:
    dao = SubjectDAO(db)
    subject = await load_subject(identity, subject_id, dao)
    enforce(identity, Action.DELETE, Resource.SUBJECT, target=subject)

    deleted = SubjectResponse.model_validate(subject)
    await dao.delete_subject(subject)
    return DataResponse(data=deleted)
