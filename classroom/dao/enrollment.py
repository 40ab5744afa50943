"""
Enrollment Data Access Object.

WHY: Enrollments have a composite primary key (student_id, class_id), so
the id-based BaseDAO helpers are replaced with pair-based ones.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.dao.base import BaseDAO, translate_integrity_error
from classroom.models.enrollment import Enrollment
from classroom.models.class_model import Class
from classroom.models.user import User


class EnrollmentDAO(BaseDAO[Enrollment]):
    """Data Access Object for Enrollment model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Enrollment, session)

    async def get_pair(self, student_id: str, class_id: int) -> Optional[Enrollment]:
        result = await self.session.execute(
            select(Enrollment).where(
                Enrollment.student_id == student_id,
                Enrollment.class_id == class_id,
            )
        )
        return result.scalar_one_or_none()

    async def count_for_class(self, class_id: int) -> int:
        return await self.count(Enrollment.class_id == class_id)

    async def delete_pair(self, student_id: str, class_id: int) -> bool:
        """
        Remove a student from a class.

        Returns:
            True if an enrollment was deleted, False if none existed
        """
        try:
            result = await self.session.execute(
                delete(Enrollment).where(
                    Enrollment.student_id == student_id,
                    Enrollment.class_id == class_id,
                )
            )
        except IntegrityError as exc:
            raise translate_integrity_error(exc, self.resource_name) from exc
        return result.rowcount > 0

    async def list_students(self, class_id: int) -> List[User]:
        """Students enrolled in a class, in enrollment order."""
        result = await self.session.execute(
            select(User)
            .join(Enrollment, Enrollment.student_id == User.id)
            .where(Enrollment.class_id == class_id)
            .order_by(Enrollment.created_at, User.name)
        )
        return list(result.scalars().all())

    async def count_for_org(self, organization_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Enrollment)
            .join(Class, Enrollment.class_id == Class.id)
            .where(Class.organization_id == organization_id)
        )
        return result.scalar_one()

    async def created_since(self, organization_id: str, since: datetime) -> List[datetime]:
        """Creation timestamps of an organization's enrollments after `since`."""
        result = await self.session.execute(
            select(Enrollment.created_at)
            .join(Class, Enrollment.class_id == Class.id)
            .where(Class.organization_id == organization_id, Enrollment.created_at >= since)
        )
        return list(result.scalars().all())
