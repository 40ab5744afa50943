"""
Class Data Access Object.

WHAT: Database operations for the Class model.

WHY: Besides CRUD, classes are the lock point for enrollment: the row is
selected FOR UPDATE before enrollments are counted so concurrent joins
into the same class serialize.
"""

import secrets
import string
from typing import Any, List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from classroom.dao.base import BaseDAO, apply_sort
from classroom.models.class_model import Class, ClassStatus
from classroom.models.enrollment import Enrollment
from classroom.models.subject import Subject


INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_CODE_LENGTH = 8

CLASS_SORT_COLUMNS = {
    "name": Class.name,
    "capacity": Class.capacity,
    "status": Class.status,
    "createdAt": Class.created_at,
    "created_at": Class.created_at,
    "updatedAt": Class.updated_at,
    "updated_at": Class.updated_at,
}


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """Random upper-case alphanumeric code students use to join a class."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


class ClassDAO(BaseDAO[Class]):
    """Data Access Object for Class model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Class, session)

    async def get_with_details(self, class_id: int, *conditions: Any) -> Optional[Class]:
        """Fetch a class with its subject (and department) and teacher."""
        result = await self.session.execute(
            select(Class)
            .where(Class.id == class_id, *conditions)
            .options(
                selectinload(Class.subject).selectinload(Subject.department),
                selectinload(Class.teacher),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, class_id: int) -> Optional[Class]:
        """
        Fetch a class and lock its row until the transaction ends.

        WHY: SELECT ... FOR UPDATE serializes enrollment inserts per class on
        PostgreSQL. SQLite ignores the clause; its single writer gives the
        same ordering.
        """
        result = await self.session.execute(
            select(Class)
            .where(Class.id == class_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_invite_code(self, invite_code: str) -> Optional[Class]:
        result = await self.session.execute(
            select(Class).where(Class.invite_code == invite_code.upper())
        )
        return result.scalar_one_or_none()

    async def invite_code_exists(self, invite_code: str) -> bool:
        result = await self.session.execute(
            select(Class.id).where(Class.invite_code == invite_code).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def new_invite_code(self) -> str:
        """Generate an invite code not used by any class."""
        while True:
            code = generate_invite_code()
            if not await self.invite_code_exists(code):
                return code

    async def create_class(self, **values: Any) -> Class:
        if not values.get("invite_code"):
            values["invite_code"] = await self.new_invite_code()
        return await self.create(**values)

    async def list_classes(
        self,
        conditions: List[Any],
        search: Optional[str] = None,
        subject_id: Optional[int] = None,
        teacher_id: Optional[str] = None,
        status: Optional[ClassStatus] = None,
        page: int = 1,
        limit: int = 10,
        sort_field: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[Class], int]:
        """
        List classes with their subject and teacher.

        Returns:
            Tuple of (classes, total)
        """
        query = (
            select(Class)
            .where(*conditions)
            .options(
                selectinload(Class.subject).selectinload(Subject.department),
                selectinload(Class.teacher),
            )
            .execution_options(populate_existing=True)
        )

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Class.name.ilike(pattern), Class.invite_code.ilike(pattern)))

        if subject_id is not None:
            query = query.where(Class.subject_id == subject_id)

        if teacher_id is not None:
            query = query.where(Class.teacher_id == teacher_id)

        if status is not None:
            query = query.where(Class.status == status)

        query = apply_sort(query, sort_field, sort_order, CLASS_SORT_COLUMNS, Class.created_at.desc())
        return await self.paginate(query, page=page, limit=limit)

    async def enrollment_count(self, class_id: int) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Enrollment).where(Enrollment.class_id == class_id)
        )
        return result.scalar_one()

    async def enrollment_counts(self, class_ids: List[int]) -> dict:
        """Map class id to enrolled student count for a batch of classes."""
        if not class_ids:
            return {}
        result = await self.session.execute(
            select(Enrollment.class_id, func.count())
            .where(Enrollment.class_id.in_(class_ids))
            .group_by(Enrollment.class_id)
        )
        return {row[0]: row[1] for row in result.all()}

    async def capacity_rows(self, organization_id: str) -> List[Tuple[int, int]]:
        """(capacity, enrolled) for every class in an organization."""
        enrolled = (
            select(func.count())
            .select_from(Enrollment)
            .where(Enrollment.class_id == Class.id)
            .correlate(Class)
            .scalar_subquery()
        )
        result = await self.session.execute(
            select(Class.capacity, enrolled).where(Class.organization_id == organization_id)
        )
        return [(row[0], row[1]) for row in result.all()]
