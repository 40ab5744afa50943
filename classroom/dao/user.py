"""
User Data Access Object.

WHY: UserDAO provides database operations for User model, following
the DAO pattern for separation of concerns and testability.
"""

from typing import Any, List, Optional, Tuple
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.dao.base import BaseDAO, apply_sort
from classroom.models.user import User, UserRole
from classroom.models.class_model import Class
from classroom.core.exceptions import ResourceAlreadyExistsError


USER_SORT_COLUMNS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
    "created_at": User.created_at,
    "updatedAt": User.updated_at,
    "updated_at": User.updated_at,
}


class UserDAO(BaseDAO[User]):
    """
    Data Access Object for User model.

    WHY: All user queries go through this DAO, ensuring consistent error
    handling. Tenant scoping is applied by passing the policy's
    scope_filter predicates into the list and lookup methods.
    """

    def __init__(self, model: type[User], session: AsyncSession):
        """Initialize UserDAO with model and session."""
        super().__init__(model, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve user by email address.

        WHY: Email is the unique identifier for authentication.
        Case-insensitive comparison prevents duplicate accounts with
        different casing (user@example.com vs USER@EXAMPLE.COM).
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        """Check if email already exists in database."""
        result = await self.session.execute(
            select(User.id).where(func.lower(User.email) == email.lower()).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def create_user(
        self,
        email: str,
        hashed_password: str,
        name: str,
        organization_id: str,
        role: UserRole = UserRole.STUDENT,
        image: Optional[str] = None,
        image_cld_pub_id: Optional[str] = None,
    ) -> User:
        """
        Create a new user.

        Args:
            email: User's email address (stored lower-case)
            hashed_password: Already hashed password (use hash_password())
            name: User's full name
            organization_id: Organization the user belongs to
            role: User role

        Returns:
            Created User instance

        Raises:
            ResourceAlreadyExistsError: If email already exists
        """
        # WHY: Prevent duplicate accounts before attempting insert
        if await self.email_exists(email):
            raise ResourceAlreadyExistsError(
                message="User with this email already exists",
                resource_type="User",
                email=email,
            )

        return await self.create(
            email=email.lower(),
            hashed_password=hashed_password,
            name=name,
            organization_id=organization_id,
            role=role,
            image=image,
            image_cld_pub_id=image_cld_pub_id,
        )

    async def get_scoped(self, user_id: str, *conditions: Any) -> Optional[User]:
        """Fetch a user by id, restricted by the given tenant predicates."""
        result = await self.session.execute(
            select(User).where(User.id == user_id, *conditions)
        )
        return result.scalar_one_or_none()

    async def get_in_org(self, user_id: str, organization_id: str) -> Optional[User]:
        """
        Fetch a user of any role within an organization.

        WHY: Policy decisions on update/delete need to see admin rows to
        report them as not found; list/read use get_scoped instead.
        """
        return await self.get_by_id_and_org(user_id, organization_id)

    async def list_users(
        self,
        conditions: List[Any],
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        page: int = 1,
        limit: int = 10,
        sort_field: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        """
        List users with search, role filter and pagination.

        Args:
            conditions: Tenant predicates from the policy
            search: Substring matched against name or email
            role: Only teachers or students
            page: 1-based page number
            limit: Page size
            sort_field: Column name (camelCase or snake_case)
            sort_order: "asc" or "desc"

        Returns:
            Tuple of (users, total)
        """
        query = select(User).where(*conditions)

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        if role in (UserRole.TEACHER, UserRole.STUDENT):
            query = query.where(User.role == role)

        query = apply_sort(query, sort_field, sort_order, USER_SORT_COLUMNS, User.created_at.desc())
        return await self.paginate(query, page=page, limit=limit)

    async def teaches_classes(self, user_id: str) -> bool:
        """Check whether a user is the assigned teacher of any class."""
        result = await self.session.execute(
            select(Class.id).where(Class.teacher_id == user_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def count_by_role(self, organization_id: str) -> dict:
        """
        Count users per role in an organization.

        Returns:
            Dict mapping role value to count
        """
        result = await self.session.execute(
            select(User.role, func.count(User.id))
            .where(User.organization_id == organization_id)
            .group_by(User.role)
        )
        return {row[0].value: row[1] for row in result.all()}
