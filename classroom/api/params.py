"""
Shared query parameters for list endpoints.

WHY: Every list accepts the same paging and sorting parameters; page and
limit are clamped (limit to 1..100) rather than rejected.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Query

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


@dataclass
class ListParams:
    page: int
    limit: int
    sort_field: Optional[str]
    sort_order: Optional[str]


def list_params(
    page: int = Query(1, description="Page number (1-based)"),
    limit: int = Query(DEFAULT_PAGE_SIZE, description="Page size (max 100)"),
    sort_field: Optional[str] = Query(None, alias="sortField", description="Column to sort by"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc or desc"),
) -> ListParams:
    return ListParams(
        page=max(1, page),
        limit=min(max(1, limit), MAX_PAGE_SIZE),
        sort_field=sort_field,
        sort_order=sort_order,
    )
