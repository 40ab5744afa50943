"""
User API endpoints.

WHY: Admins manage the teachers and students of their organization here.
Users are never created through this resource (sign-up does that), admin
rows are hidden from listings, and nobody can be promoted to admin.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.api.params import ListParams, list_params
from classroom.core.deps import get_current_identity
from classroom.core.exceptions import DependentRowsExistError, ResourceAlreadyExistsError, UserNotFoundError
from classroom.core.policy import Action, Identity, Resource, enforce, require_in_tenant, scope_filter
from classroom.db.session import get_db
from classroom.dao.department import TeacherDepartmentDAO
from classroom.dao.enrollment import EnrollmentDAO
from classroom.dao.user import UserDAO
from classroom.models.enrollment import Enrollment
from classroom.models.user import User, UserRole
from classroom.schemas.common import DataResponse, ListResponse, Pagination
from classroom.schemas.user import UserResponse, UserUpdate


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def check_role_change(user: User, db: AsyncSession) -> None:
    """
    Guard a teacher <-> student switch.

    Classes only point at teachers and enrollments only at students, so a
    user holding either cannot switch. A former teacher's department
    assignments are removed.

    Raises:
        DependentRowsExistError (400): Teacher with classes, or student with enrollments
    """
    if user.role == UserRole.TEACHER:
        if await UserDAO(User, db).teaches_classes(user.id):
            raise DependentRowsExistError(
                message="Cannot change the role of a teacher who is assigned to classes",
                resource_type="User",
                user_id=user.id,
            )
        removed = await TeacherDepartmentDAO(db).unassign_all(user.id)
        if removed:
            logger.info("Removed %s department assignments of former teacher %s", removed, user.id)

    elif user.role == UserRole.STUDENT:
        if await EnrollmentDAO(db).count(Enrollment.student_id == user.id):
            raise DependentRowsExistError(
                message="Cannot change the role of a student who is enrolled in classes",
                resource_type="User",
                user_id=user.id,
            )


@router.get(
    "",
    response_model=ListResponse[UserResponse],
    summary="List users",
    description="List the organization's teachers and students with search, role filter, paging and sorting",
)
async def list_users(
    search: str | None = Query(None, description="Match name or email"),
    role: UserRole | None = Query(None, description="teacher or student"),
    params: ListParams = Depends(list_params),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> ListResponse[UserResponse]:
    enforce(identity, Action.READ_LIST, Resource.USER)

    users, total = await UserDAO(User, db).list_users(
        scope_filter(identity, Resource.USER),
        search=search,
        role=role,
        page=params.page,
        limit=params.limit,
        sort_field=params.sort_field,
        sort_order=params.sort_order,
    )

    return ListResponse(
        data=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination.build(params.page, params.limit, total),
    )


@router.get(
    "/{user_id}",
    response_model=DataResponse[UserResponse],
    summary="Get user",
    description="Get a teacher or student, or the caller's own profile",
)
async def get_user(
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[UserResponse]:
    user = await UserDAO(User, db).get_by_id(user_id)
    require_in_tenant(identity, user, UserNotFoundError, user_id=user_id)
    enforce(identity, Action.READ_ONE, Resource.USER, target=user)
    return DataResponse(data=UserResponse.model_validate(user))


@router.put(
    "/{user_id}",
    response_model=DataResponse[UserResponse],
    summary="Update user",
    description="Update a teacher or student (admin only). The admin role cannot be assigned.",
)
async def update_user(
    user_id: str,
    data: UserUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[UserResponse]:
    """
    Update user.

    Raises:
        AuthorizationError (403): role=admin requested, or caller is not an admin
        UserNotFoundError (404): Missing, other organization, or an admin row
        ResourceAlreadyExistsError (409): Email already registered
        DependentRowsExistError (400): Role change while classes or enrollments reference the user
    """
    payload = data.model_dump(exclude_unset=True)
    dao = UserDAO(User, db)

    # WHY: the admin-role check must run before any lookup
    enforce(identity, Action.UPDATE, Resource.USER, payload=payload)

    user = await dao.get_in_org(user_id, identity.organization_id)
    require_in_tenant(identity, user, UserNotFoundError, user_id=user_id)
    enforce(identity, Action.UPDATE, Resource.USER, target=user, payload=payload)

    email = payload.get("email")
    if email and email != user.email and await dao.email_exists(email):
        raise ResourceAlreadyExistsError(
            message="User with this email already exists",
            resource_type="User",
            email=email,
        )

    role = payload.get("role")
    if role is not None and role != user.role:
        await check_role_change(user, db)

    user = await dao.update(user.id, **payload)
    return DataResponse(data=UserResponse.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=DataResponse[UserResponse],
    summary="Delete user",
    description="Delete a teacher or student (admin only). Teachers with classes cannot be deleted.",
)
async def delete_user(
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[UserResponse]:
    """
    Delete user.

    Raises:
        InsufficientPermissionsError (403): If caller is not an admin
        UserNotFoundError (404): Missing, other organization, or an admin row
        DependentRowsExistError (400): The user still teaches classes
    """
    dao = UserDAO(User, db)
    user = await dao.get_in_org(user_id, identity.organization_id)
    require_in_tenant(identity, user, UserNotFoundError, user_id=user_id)
    enforce(identity, Action.DELETE, Resource.USER, target=user)

    if await dao.teaches_classes(user.id):
        raise DependentRowsExistError(
            message="Cannot delete a teacher who is assigned to classes",
            resource_type="User",
            user_id=user_id,
        )

    deleted = UserResponse.model_validate(user)
    await dao.delete(user.id)
    return DataResponse(data=deleted)
