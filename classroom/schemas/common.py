"""
Shared schema building blocks.

WHY: Every response uses the same envelope ({data} or {data, pagination})
and camelCase keys, so those live in one place.
"""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model with camelCase JSON keys.

    WHY: Clients send and receive camelCase (organizationId, sortField);
    Python code keeps snake_case attributes. populate_by_name accepts both
    on input, from_attributes allows validating ORM rows directly.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    """Pagination metadata returned with every list."""

    page: int = Field(..., ge=1, description="Current page (1-based)")
    limit: int = Field(..., ge=1, description="Page size")
    total: int = Field(..., ge=0, description="Total rows matching the filters")
    total_pages: int = Field(..., ge=0, description="Number of pages")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


DataT = TypeVar("DataT")


class DataResponse(BaseModel, Generic[DataT]):
    """Single-object envelope: {"data": ...}."""

    data: DataT


class ListResponse(BaseModel, Generic[DataT]):
    """List envelope: {"data": [...], "pagination": {...}}."""

    data: List[DataT]
    pagination: Pagination


class MessageResponse(CamelModel):
    """Plain confirmation message."""

    message: str
