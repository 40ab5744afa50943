"""
Pydantic schemas for dashboard endpoints.
"""

from classroom.schemas.common import CamelModel


class DashboardStats(CamelModel):
    users: int
    classes: int
    enrollments: int
    subjects: int
    departments: int


class CountPoint(CamelModel):
    """Chart point for series keyed by count (trends, classes per department)."""

    name: str
    count: int


class ValuePoint(CamelModel):
    """Chart point for pie-style series (user distribution, capacity)."""

    name: str
    value: int
