"""
Subject Data Access Object.

WHAT: Database operations for the Subject model.

WHY: Subject reads always carry their department, and subject codes are
unique per organization; both concerns live next to the queries.
"""

from typing import Any, List, Optional, Tuple
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from classroom.dao.base import BaseDAO, apply_sort
from classroom.models.subject import Subject
from classroom.models.department import Department
from classroom.models.class_model import Class
from classroom.core.exceptions import ResourceAlreadyExistsError, DependentRowsExistError


SUBJECT_SORT_COLUMNS = {
    "name": Subject.name,
    "code": Subject.code,
    "createdAt": Subject.created_at,
    "created_at": Subject.created_at,
    "updatedAt": Subject.updated_at,
    "updated_at": Subject.updated_at,
}


class SubjectDAO(BaseDAO[Subject]):
    """Data Access Object for Subject model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Subject, session)

    async def get_with_department(self, subject_id: int, *conditions: Any) -> Optional[Subject]:
        """
        Fetch a subject and its department.

        WHY: populate_existing reloads a row already in the session (for
        example right after an update) so the department is never stale.
        """
        result = await self.session.execute(
            select(Subject)
            .where(Subject.id == subject_id, *conditions)
            .options(selectinload(Subject.department))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def code_exists(
        self,
        organization_id: str,
        code: str,
        exclude_id: Optional[int] = None,
    ) -> bool:
        query = select(Subject.id).where(
            Subject.organization_id == organization_id,
            Subject.code == code,
        )
        if exclude_id is not None:
            query = query.where(Subject.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def create_subject(self, **values: Any) -> Subject:
        """
        Create a subject.

        Raises:
            ResourceAlreadyExistsError: If the code is taken in the organization
        """
        if await self.code_exists(values["organization_id"], values["code"]):
            raise ResourceAlreadyExistsError(
                message="Subject with this code already exists",
                resource_type="Subject",
                code=values["code"],
            )
        return await self.create(**values)

    async def update_subject(self, subject: Subject, **values: Any) -> Subject:
        code = values.get("code")
        if code and await self.code_exists(subject.organization_id, code, exclude_id=subject.id):
            raise ResourceAlreadyExistsError(
                message="Subject with this code already exists",
                resource_type="Subject",
                code=code,
            )
        return await self.update(subject.id, **values)

    async def delete_subject(self, subject: Subject) -> None:
        """
        Delete a subject.

        Raises:
            DependentRowsExistError: If any class still references it
        """
        if await self.has_classes(subject.id):
            raise DependentRowsExistError(
                message="Cannot delete subject with existing classes",
                resource_type="Subject",
                subject_id=subject.id,
            )
        await self.delete(subject.id)

    async def has_classes(self, subject_id: int) -> bool:
        result = await self.session.execute(
            select(Class.id).where(Class.subject_id == subject_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_subjects(
        self,
        conditions: List[Any],
        search: Optional[str] = None,
        department: Optional[str] = None,
        department_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
        sort_field: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[Subject], int]:
        """
        List subjects with their department.

        Args:
            conditions: Tenant predicates from the policy
            search: Substring matched against name or code
            department: Substring matched against the department name
            department_id: Exact department filter

        Returns:
            Tuple of (subjects, total)
        """
        query = (
            select(Subject)
            .join(Department, Subject.department_id == Department.id)
            .where(*conditions)
            .options(selectinload(Subject.department))
            .execution_options(populate_existing=True)
        )

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Subject.name.ilike(pattern), Subject.code.ilike(pattern)))

        if department:
            query = query.where(Department.name.ilike(f"%{department}%"))

        if department_id is not None:
            query = query.where(Subject.department_id == department_id)

        query = apply_sort(query, sort_field, sort_order, SUBJECT_SORT_COLUMNS, Subject.created_at.desc())
        return await self.paginate(query, page=page, limit=limit)
