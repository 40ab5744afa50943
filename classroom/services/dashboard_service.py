"""
Dashboard aggregates.

WHAT: Tenant-scoped counts and chart series for the admin dashboard.

WHY: Every number is filtered by the caller's organization; a dashboard
must never mix tenants.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.policy import Identity
from classroom.dao.class_model import ClassDAO
from classroom.dao.department import DepartmentDAO
from classroom.dao.enrollment import EnrollmentDAO
from classroom.dao.subject import SubjectDAO
from classroom.dao.user import UserDAO
from classroom.models.user import User, UserRole

TREND_MONTHS = 6
NEAR_CAPACITY_RATIO = 0.8


def month_starts(now: datetime, months: int) -> List[datetime]:
    """First day of each of the last `months` calendar months, oldest first."""
    year, month = now.year, now.month
    starts = []
    for _ in range(months):
        starts.append(datetime(year, month, 1))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(starts))


class DashboardService:
    def __init__(self, session: AsyncSession):
        self.user_dao = UserDAO(User, session)
        self.class_dao = ClassDAO(session)
        self.subject_dao = SubjectDAO(session)
        self.department_dao = DepartmentDAO(session)
        self.enrollment_dao = EnrollmentDAO(session)

    async def stats(self, identity: Identity) -> Dict[str, int]:
        org_id = identity.organization_id
        return {
            "users": await self.user_dao.count(organization_id=org_id),
            "classes": await self.class_dao.count(organization_id=org_id),
            "enrollments": await self.enrollment_dao.count_for_org(org_id),
            "subjects": await self.subject_dao.count(organization_id=org_id),
            "departments": await self.department_dao.count(organization_id=org_id),
        }

    async def enrollment_trends(
        self,
        identity: Identity,
        months: int = TREND_MONTHS,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, object]]:
        """
        New enrollments per calendar month, oldest first.

        Returns:
            [{"name": "Jan", "count": 3}, ...] with one entry per month,
            including months without enrollments
        """
        starts = month_starts(now or datetime.utcnow(), months)
        created = await self.enrollment_dao.created_since(identity.organization_id, starts[0])

        buckets = {(start.year, start.month): 0 for start in starts}
        for created_at in created:
            key = (created_at.year, created_at.month)
            if key in buckets:
                buckets[key] += 1

        return [
            {"name": start.strftime("%b"), "count": buckets[(start.year, start.month)]}
            for start in starts
        ]

    async def classes_by_department(self, identity: Identity) -> List[Dict[str, object]]:
        rows = await self.department_dao.class_counts(identity.organization_id)
        return [{"name": name, "count": count} for name, count in rows]

    async def user_distribution(self, identity: Identity) -> List[Dict[str, object]]:
        counts = await self.user_dao.count_by_role(identity.organization_id)
        return [{"name": role.value, "value": counts.get(role.value, 0)} for role in UserRole]

    async def capacity_status(self, identity: Identity) -> List[Dict[str, object]]:
        """
        Classes bucketed by how full they are.

        Full: enrolled >= capacity. Near Capacity: at least 80% but not full.
        Available: everything else.
        """
        full = near_full = available = 0
        for capacity, enrolled in await self.class_dao.capacity_rows(identity.organization_id):
            if enrolled >= capacity:
                full += 1
            elif enrolled >= capacity * NEAR_CAPACITY_RATIO:
                near_full += 1
            else:
                available += 1

        return [
            {"name": "Full", "value": full},
            {"name": "Near Capacity", "value": near_full},
            {"name": "Available", "value": available},
        ]
