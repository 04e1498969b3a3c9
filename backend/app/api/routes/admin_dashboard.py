"""Admin Dashboard — stats, activity feed, analytics, and progressive-loading tiers.

Invariants:
    - Every route depends on require_admin
    - The request clock is read once per call and passed down
"""

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import AuthenticatedContext, require_admin
from app.schemas.dashboard import (
    ActivityResponse, AdminStats, AnalyticsMetricResponse,
    CriticalAnalyticsResponse, CriticalDashboardResponse, DashboardResponse,
    DetailedAnalyticsResponse, DetailedDashboardResponse,
    SecondaryAnalyticsResponse, SecondaryDashboardResponse,
)
from app.services import admin_analytics

router = APIRouter(prefix="/api/v1/admin", tags=["admin-dashboard"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/analytics", response_model=list[AnalyticsMetricResponse])
async def get_analytics(
    days: int = Query(7, ge=1, le=365),
    ctx: AuthenticatedContext = Depends(require_admin),
):
    metrics = await admin_analytics.get_analytics(ctx.db, _now(), days)
    return [AnalyticsMetricResponse.model_validate(m) for m in metrics]


@router.get("/stats", response_model=AdminStats)
async def get_stats(ctx: AuthenticatedContext = Depends(require_admin)):
    return await admin_analytics.get_stats(ctx.db, _now())


@router.get("/activities/recent", response_model=list[ActivityResponse])
async def get_recent_activities(
    limit: int = Query(10, ge=1, le=100),
    ctx: AuthenticatedContext = Depends(require_admin),
):
    activities = await admin_analytics.get_recent_activities(ctx.db, limit)
    return [ActivityResponse.model_validate(a) for a in activities]


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    analytics_days: int = Query(7, ge=1, le=365),
    activities_limit: int = Query(10, ge=1, le=100),
    ctx: AuthenticatedContext = Depends(require_admin),
):
    """Stats, analytics, and recent activities in one payload."""
    payload = await admin_analytics.get_dashboard(
        ctx.db, _now(), analytics_days, activities_limit,
    )
    return DashboardResponse.model_validate(payload, from_attributes=True)


@router.get("/dashboard/critical", response_model=CriticalDashboardResponse)
async def get_critical_dashboard(ctx: AuthenticatedContext = Depends(require_admin)):
    return await admin_analytics.get_critical_dashboard(ctx.db, _now())


@router.get("/dashboard/secondary", response_model=SecondaryDashboardResponse)
async def get_secondary_dashboard(
    analytics_days: int = Query(7, ge=1, le=365),
    ctx: AuthenticatedContext = Depends(require_admin),
):
    payload = await admin_analytics.get_secondary_dashboard(ctx.db, _now(), analytics_days)
    return SecondaryDashboardResponse.model_validate(payload, from_attributes=True)


@router.get("/dashboard/detailed", response_model=DetailedDashboardResponse)
async def get_detailed_dashboard(ctx: AuthenticatedContext = Depends(require_admin)):
    payload = await admin_analytics.get_detailed_dashboard(ctx.db, _now())
    return DetailedDashboardResponse.model_validate(payload, from_attributes=True)


@router.get("/analytics/critical", response_model=CriticalAnalyticsResponse)
async def get_critical_analytics(ctx: AuthenticatedContext = Depends(require_admin)):
    return await admin_analytics.get_critical_analytics(ctx.db, _now())


@router.get("/analytics/secondary", response_model=SecondaryAnalyticsResponse)
async def get_secondary_analytics(
    days: int = Query(30, ge=1, le=365),
    segment: str | None = Query(None, max_length=50),
    ctx: AuthenticatedContext = Depends(require_admin),
):
    payload = await admin_analytics.get_secondary_analytics(ctx.db, _now(), days, segment)
    return SecondaryAnalyticsResponse.model_validate(payload, from_attributes=True)


@router.get("/analytics/detailed", response_model=DetailedAnalyticsResponse)
async def get_detailed_analytics(
    metric: str = Query(..., min_length=1, max_length=100),
    start: date = Query(...),
    end: date = Query(...),
    segment: str | None = Query(None, max_length=50),
    ctx: AuthenticatedContext = Depends(require_admin),
):
    """Daily drill-down of one metric."""
    return await admin_analytics.get_detailed_analytics(
        ctx.db, _now(), metric, start, end, segment,
    )
