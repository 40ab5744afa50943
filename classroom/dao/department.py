"""
Department Data Access Objects.

WHAT: Database operations for departments and teacher assignments.

WHY: Department codes are unique per organization and departments with
subjects cannot be removed; both checks live here next to the queries.
"""

from typing import Any, List, Optional, Tuple
from sqlalchemy import select, func, or_, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.dao.base import BaseDAO, apply_sort, translate_integrity_error
from classroom.models.department import Department, TeacherDepartment
from classroom.models.subject import Subject
from classroom.models.class_model import Class
from classroom.models.user import User
from classroom.core.exceptions import ResourceAlreadyExistsError, DependentRowsExistError


DEPARTMENT_SORT_COLUMNS = {
    "name": Department.name,
    "code": Department.code,
    "createdAt": Department.created_at,
    "created_at": Department.created_at,
    "updatedAt": Department.updated_at,
    "updated_at": Department.updated_at,
}


class DepartmentDAO(BaseDAO[Department]):
    """Data Access Object for Department model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Department, session)

    async def get_scoped(self, department_id: int, *conditions: Any) -> Optional[Department]:
        result = await self.session.execute(
            select(Department).where(Department.id == department_id, *conditions)
        )
        return result.scalar_one_or_none()

    async def code_exists(
        self,
        organization_id: str,
        code: str,
        exclude_id: Optional[int] = None,
    ) -> bool:
        """Check whether a department code is taken inside an organization."""
        query = select(Department.id).where(
            Department.organization_id == organization_id,
            Department.code == code,
        )
        if exclude_id is not None:
            query = query.where(Department.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def create_department(self, **values: Any) -> Department:
        """
        Create a department.

        Raises:
            ResourceAlreadyExistsError: If the code is taken in the organization
        """
        if await self.code_exists(values["organization_id"], values["code"]):
            raise ResourceAlreadyExistsError(
                message="Department with this code already exists",
                resource_type="Department",
                code=values["code"],
            )
        return await self.create(**values)

    async def update_department(self, department: Department, **values: Any) -> Department:
        code = values.get("code")
        if code and await self.code_exists(department.organization_id, code, exclude_id=department.id):
            raise ResourceAlreadyExistsError(
                message="Department with this code already exists",
                resource_type="Department",
                code=code,
            )
        return await self.update(department.id, **values)

    async def delete_department(self, department: Department) -> None:
        """
        Delete a department.

        Raises:
            DependentRowsExistError: If any subject still references it
        """
        if await self.has_subjects(department.id):
            raise DependentRowsExistError(
                message="Cannot delete department with existing subjects",
                resource_type="Department",
                department_id=department.id,
            )
        await self.delete(department.id)

    async def has_subjects(self, department_id: int) -> bool:
        result = await self.session.execute(
            select(Subject.id).where(Subject.department_id == department_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_departments(
        self,
        conditions: List[Any],
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_field: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[Department], int]:
        """
        List departments with name/code search and pagination.

        Returns:
            Tuple of (departments, total)
        """
        query = select(Department).where(*conditions)

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Department.name.ilike(pattern), Department.code.ilike(pattern)))

        query = apply_sort(
            query, sort_field, sort_order, DEPARTMENT_SORT_COLUMNS, Department.created_at.desc()
        )
        return await self.paginate(query, page=page, limit=limit)

    async def class_counts(self, organization_id: str) -> List[Tuple[str, int]]:
        """
        Number of classes per department.

        WHY: Outer joins keep departments without subjects or classes in the
        report with a zero count.
        """
        result = await self.session.execute(
            select(Department.name, func.count(Class.id).label("count"))
            .select_from(Department)
            .outerjoin(Subject, Subject.department_id == Department.id)
            .outerjoin(Class, Class.subject_id == Subject.id)
            .where(Department.organization_id == organization_id)
            .group_by(Department.id, Department.name)
            .order_by(func.count(Class.id).desc(), Department.name)
        )
        return [(row[0], row[1]) for row in result.all()]


class TeacherDepartmentDAO(BaseDAO[TeacherDepartment]):
    """Data Access Object for teacher <-> department assignments."""

    def __init__(self, session: AsyncSession):
        super().__init__(TeacherDepartment, session)

    async def get(self, teacher_id: str, department_id: int) -> Optional[TeacherDepartment]:
        result = await self.session.execute(
            select(TeacherDepartment).where(
                TeacherDepartment.teacher_id == teacher_id,
                TeacherDepartment.department_id == department_id,
            )
        )
        return result.scalar_one_or_none()

    async def assign(self, teacher_id: str, department_id: int) -> TeacherDepartment:
        """
        Assign a teacher to a department.

        Raises:
            ResourceAlreadyExistsError: If the teacher is already assigned
        """
        if await self.get(teacher_id, department_id) is not None:
            raise ResourceAlreadyExistsError(
                message="Teacher is already assigned to this department",
                resource_type="TeacherDepartment",
                teacher_id=teacher_id,
                department_id=department_id,
            )
        return await self.create(teacher_id=teacher_id, department_id=department_id)

    async def unassign(self, teacher_id: str, department_id: int) -> bool:
        try:
            result = await self.session.execute(
                delete(TeacherDepartment).where(
                    TeacherDepartment.teacher_id == teacher_id,
                    TeacherDepartment.department_id == department_id,
                )
            )
        except IntegrityError as exc:
            raise translate_integrity_error(exc, self.resource_name) from exc
        return result.rowcount > 0

    async def unassign_all(self, teacher_id: str) -> int:
        """Remove a teacher from every department; returns the number removed."""
        result = await self.session.execute(
            delete(TeacherDepartment).where(TeacherDepartment.teacher_id == teacher_id)
        )
        return result.rowcount

    async def list_teachers(self, department_id: int) -> List[User]:
        """Teachers assigned to a department, by name."""
        result = await self.session.execute(
            select(User)
            .join(TeacherDepartment, TeacherDepartment.teacher_id == User.id)
            .where(TeacherDepartment.department_id == department_id)
            .order_by(User.name)
        )
        return list(result.scalars().all())
