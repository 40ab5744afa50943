"""
Dashboard API endpoints.

WHY: Summary numbers and chart series for the organization's dashboard.
Any signed-in member can read them; every figure is limited to the
caller's organization.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.deps import get_current_identity
from classroom.core.policy import Identity
from classroom.db.session import get_db
from classroom.schemas.common import DataResponse
from classroom.schemas.dashboard import CountPoint, DashboardStats, ValuePoint
from classroom.services.dashboard_service import TREND_MONTHS, DashboardService


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DataResponse[DashboardStats], summary="Organization totals")
async def get_stats(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[DashboardStats]:
    stats = await DashboardService(db).stats(identity)
    return DataResponse(data=DashboardStats(**stats))


@router.get(
    "/charts/enrollment-trends",
    response_model=DataResponse[List[CountPoint]],
    summary="New enrollments per month",
)
async def get_enrollment_trends(
    months: int = Query(TREND_MONTHS, ge=1, le=24),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[List[CountPoint]]:
    points = await DashboardService(db).enrollment_trends(identity, months=months)
    return DataResponse(data=[CountPoint(**p) for p in points])


@router.get(
    "/charts/classes-by-department",
    response_model=DataResponse[List[CountPoint]],
    summary="Classes per department",
)
async def get_classes_by_department(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[List[CountPoint]]:
    points = await DashboardService(db).classes_by_department(identity)
    return DataResponse(data=[CountPoint(**p) for p in points])


@router.get(
    "/charts/user-distribution",
    response_model=DataResponse[List[ValuePoint]],
    summary="Users per role",
)
async def get_user_distribution(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[List[ValuePoint]]:
    points = await DashboardService(db).user_distribution(identity)
    return DataResponse(data=[ValuePoint(**p) for p in points])


@router.get(
    "/charts/capacity-status",
    response_model=DataResponse[List[ValuePoint]],
    summary="Classes by fill level",
)
async def get_capacity_status(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[List[ValuePoint]]:
    points = await DashboardService(db).capacity_status(identity)
    return DataResponse(data=[ValuePoint(**p) for p in points])
