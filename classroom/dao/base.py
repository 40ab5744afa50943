"""
Base Data Access Object (DAO) class.

WHY: The DAO pattern separates database operations from business logic,
making the codebase more testable, maintainable, and allowing easier
database technology changes in the future.
"""

import logging
from typing import Generic, TypeVar, Type, Optional, List, Any, Tuple
from sqlalchemy import Select, select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import (
    ResourceAlreadyExistsError,
    DependentRowsExistError,
    ValidationError,
)
from classroom.models.base import Base

logger = logging.getLogger(__name__)

# Type variable for model class
ModelType = TypeVar("ModelType", bound=Base)


def translate_integrity_error(exc: IntegrityError, resource: str) -> Exception:
    """
    Map a database constraint violation to an application exception.

    WHY: Uniqueness and restrict-on-delete are pre-checked by the DAOs, but
    a concurrent request can still win the race. The constraint is the final
    arbiter; this turns its error into the same 409/400 the pre-check raises.
    """
    text = str(exc.orig).lower()
    if "unique" in text or "duplicate" in text:
        return ResourceAlreadyExistsError(
            message=f"{resource} already exists",
            resource_type=resource,
        )
    if "foreign key" in text:
        return DependentRowsExistError(resource_type=resource)
    logger.error("Unmapped integrity error on %s: %s", resource, exc.orig)
    return ValidationError(message=f"Invalid {resource} data", resource_type=resource)


def apply_sort(
    query: Select,
    sort_field: Optional[str],
    sort_order: Optional[str],
    columns: dict,
    default: Any,
) -> Select:
    """
    Order a select by a whitelisted client-supplied field.

    WHY: sortField comes straight from the query string; only names in
    `columns` are honoured, anything else falls back to `default`.
    """
    column = columns.get(sort_field) if sort_field else None
    if column is None:
        return query.order_by(default)
    if (sort_order or "asc").lower() == "desc":
        return query.order_by(column.desc())
    return query.order_by(column.asc())


class BaseDAO(Generic[ModelType]):
    """
    Base Data Access Object providing CRUD operations for all models.

    WHY: Centralizing database operations in DAOs separates data access
    concerns from business logic, making code more testable and maintainable.
    Using generics allows type-safe reuse across different models.

    Type Parameters:
        ModelType: The SQLAlchemy model class this DAO manages
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize DAO with model class and database session.

        Args:
            model: The SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    @property
    def resource_name(self) -> str:
        return self.model.__name__

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Field values for the new record

        Returns:
            The created model instance with database-generated fields populated

        Raises:
            ResourceAlreadyExistsError: If unique constraints are violated
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        try:
            await self.session.flush()  # Flush to get auto-generated fields
        except IntegrityError as exc:
            raise translate_integrity_error(exc, self.resource_name) from exc
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        """
        Retrieve a single record by primary key.

        Args:
            id: Primary key value

        Returns:
            The model instance if found, None otherwise
        """
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_all(self, skip: int = 0, limit: int = 100, **filters: Any) -> List[ModelType]:
        """
        Retrieve multiple records with optional pagination and filtering.

        Args:
            skip: Number of records to skip (for pagination)
            limit: Maximum number of records to return
            **filters: Field name to value filters (e.g., organization_id="abc")

        Returns:
            List of model instances matching the filters
        """
        query = select(self.model)

        for field, value in filters.items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)

        query = query.offset(skip).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_by_field(self, field_name: str, value: Any) -> Optional[ModelType]:
        """
        Retrieve a single record by any field.

        Raises:
            AttributeError: If field_name doesn't exist on the model
        """
        if not hasattr(self.model, field_name):
            raise AttributeError(f"{self.model.__name__} has no field '{field_name}'")

        result = await self.session.execute(
            select(self.model).where(getattr(self.model, field_name) == value)
        )
        return result.scalar_one_or_none()

    async def update(self, id: Any, **kwargs: Any) -> Optional[ModelType]:
        """
        Update an existing record.

        Args:
            id: Primary key of the record to update
            **kwargs: Fields to update

        Returns:
            Updated model instance if found, None otherwise

        Raises:
            ResourceAlreadyExistsError: If the update violates a unique constraint
        """
        if not kwargs:
            return await self.get_by_id(id)

        try:
            result = await self.session.execute(
                update(self.model).where(self.model.id == id).values(**kwargs).returning(self.model)
            )
        except IntegrityError as exc:
            raise translate_integrity_error(exc, self.resource_name) from exc
        instance = result.scalar_one_or_none()
        if instance:
            await self.session.refresh(instance)
        return instance

    async def delete(self, id: Any) -> bool:
        """
        Delete a record by primary key.

        Returns:
            True if a record was deleted, False if not found

        Raises:
            DependentRowsExistError: If a restrict-on-delete reference blocks it
        """
        try:
            result = await self.session.execute(delete(self.model).where(self.model.id == id))
        except IntegrityError as exc:
            raise translate_integrity_error(exc, self.resource_name) from exc
        return result.rowcount > 0

    async def count(self, *conditions: Any, **filters: Any) -> int:
        """
        Count records matching filters.

        WHY: Counting in SQL avoids loading rows just to measure them.

        Args:
            *conditions: SQLAlchemy boolean expressions
            **filters: Field name to value filters

        Returns:
            Number of records matching the filters
        """
        query = select(func.count()).select_from(self.model).where(*conditions)

        for field, value in filters.items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def exists(self, *conditions: Any, **filters: Any) -> bool:
        """Check if any records matching filters exist (stops at first match)."""
        query = select(self.model).where(*conditions)

        for field, value in filters.items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)

        query = query.limit(1)
        result = await self.session.execute(query)
        return result.scalars().first() is not None

    async def paginate(
        self,
        query: Select,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[ModelType], int]:
        """
        Run a select with page/limit and return (rows, total).

        WHY: Every list endpoint returns pagination metadata, so the total
        is computed from the same filtered query before offset/limit apply.

        Args:
            query: Filtered and ordered select over self.model
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (rows on the page, total rows matching the query)
        """
        count_query = select(func.count()).select_from(
            query.order_by(None).subquery()
        )
        total = (await self.session.execute(count_query)).scalar_one()

        result = await self.session.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().unique().all()), total

    async def get_by_org(self, organization_id: str, skip: int = 0, limit: int = 100) -> List[ModelType]:
        """
        Retrieve records for a specific organization (multi-tenant support).

        Raises:
            AttributeError: If the model doesn't have an organization_id field
        """
        if not hasattr(self.model, "organization_id"):
            raise AttributeError(
                f"{self.model.__name__} is not a multi-tenant model (no organization_id field)"
            )

        return await self.get_all(skip=skip, limit=limit, organization_id=organization_id)

    async def get_by_id_and_org(self, id: Any, organization_id: str) -> Optional[ModelType]:
        """
        Retrieve a record by ID, ensuring it belongs to the specified organization.

        WHY: Critical for preventing cross-organization data access
        (A01: Broken Access Control).

        Returns:
            The model instance if found and belongs to org, None otherwise

        Raises:
            AttributeError: If the model doesn't have an organization_id field
        """
        if not hasattr(self.model, "organization_id"):
            raise AttributeError(
                f"{self.model.__name__} is not a multi-tenant model (no organization_id field)"
            )

        result = await self.session.execute(
            select(self.model).where(
                self.model.id == id,
                self.model.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()
