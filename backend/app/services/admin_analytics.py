"""Admin Analytics — stats, activity feed, analytics windows, and tiered dashboard payloads.

Invariants:
    - Callers pass `now`; every window is computed from it (testable without freezing time)
    - "Today" starts at 00:00 UTC
    - Metric windows are inclusive of their start instant, ordered by metric_date ascending
    - Activity feeds are newest first with the actor's profile eagerly loaded
    - Detailed ranges span at most MAX_DETAILED_DAYS days, up to and including date.max

Design Decisions:
    - Queries run sequentially: one AsyncSession cannot multiplex concurrent statements
    - Tier cache lifetimes (15s/30s/60s) are hints for clients, not server-side caches
"""

from datetime import date, datetime, time, timezone

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_math import (
    compute_critical_kpis, daily_series, totals_by_metric,
)
from app.core.domain_types import DashboardTier
from app.core.errors import InputValidationError
from app.core.time_windows import cache_expiry_ms, start_of_day, window_start
from app.models.activity import Activity
from app.models.analytics_metric import AnalyticsMetric
from app.models.profile import Profile

DASHBOARD_VERSION = "1.0.0"
TIER_CACHE_SECONDS = {
    DashboardTier.CRITICAL: 15,
    DashboardTier.SECONDARY: 30,
    DashboardTier.DETAILED: 60,
}
DASHBOARD_CACHE_SECONDS = 30
ACTIVE_USER_DAYS = 7
KPI_WINDOW_DAYS = 30
MAX_DETAILED_DAYS = 366


# ─── Building blocks ────────────────────────────────────────────

async def count_profiles(db: AsyncSession, since: datetime | None = None) -> int:
    query = select(func.count()).select_from(Profile)
    if since is not None:
        query = query.where(Profile.created_at >= since)
    return await db.scalar(query) or 0


async def count_activities(db: AsyncSession, since: datetime | None = None) -> int:
    query = select(func.count()).select_from(Activity)
    if since is not None:
        query = query.where(Activity.created_at >= since)
    return await db.scalar(query) or 0


async def get_stats(db: AsyncSession, now: datetime) -> dict:
    return {
        "total_users": await count_profiles(db),
        "total_activities": await count_activities(db),
        "today_activities": await count_activities(db, since=start_of_day(now)),
    }


async def get_analytics(
    db: AsyncSession,
    now: datetime,
    days: int,
    segment: str | None = None,
) -> list[AnalyticsMetric]:
    """Metrics with metric_date inside the trailing window, oldest first."""
    query = select(AnalyticsMetric).where(
        AnalyticsMetric.metric_date >= window_start(now, days),
    )
    if segment:
        query = query.where(AnalyticsMetric.metric_type == segment)
    result = await db.execute(query.order_by(AnalyticsMetric.metric_date.asc()))
    return list(result.scalars().all())


async def get_recent_activities(
    db: AsyncSession, limit: int | None = None,
) -> list[Activity]:
    """Newest activities with actor profile; limit=None returns all."""
    query = select(Activity).order_by(Activity.created_at.desc())
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_active_users(db: AsyncSession, now: datetime, days: int) -> int:
    count = await db.scalar(
        select(func.count(distinct(Activity.user_id))).where(
            Activity.created_at >= window_start(now, days),
        ),
    )
    return count or 0


def tier_metadata(tier: DashboardTier, now: datetime) -> dict:
    return {
        "tier": tier,
        "fetched_at": now,
        "cache_expiry": cache_expiry_ms(now, TIER_CACHE_SECONDS[tier]),
    }


# ─── Combined dashboard ─────────────────────────────────────────

async def get_dashboard(
    db: AsyncSession, now: datetime, analytics_days: int, activities_limit: int,
) -> dict:
    return {
        "stats": await get_stats(db, now),
        "analytics": await get_analytics(db, now, analytics_days),
        "recent_activities": await get_recent_activities(db, activities_limit),
        "metadata": {
            "fetched_at": now,
            "version": DASHBOARD_VERSION,
            "cache_expiry": cache_expiry_ms(now, DASHBOARD_CACHE_SECONDS),
        },
    }


# ─── Progressive dashboard tiers ────────────────────────────────

async def get_critical_dashboard(db: AsyncSession, now: datetime) -> dict:
    return {
        "total_users": await count_profiles(db),
        "active_users": await count_active_users(db, now, ACTIVE_USER_DAYS),
        "metadata": tier_metadata(DashboardTier.CRITICAL, now),
    }


async def get_secondary_dashboard(
    db: AsyncSession, now: datetime, analytics_days: int,
) -> dict:
    return {
        "total_activities": await count_activities(db),
        "today_activities": await count_activities(db, since=start_of_day(now)),
        "analytics": await get_analytics(db, now, analytics_days),
        "metadata": tier_metadata(DashboardTier.SECONDARY, now),
    }


async def get_detailed_dashboard(db: AsyncSession, now: datetime) -> dict:
    return {
        "recent_activities": await get_recent_activities(db),
        "metadata": tier_metadata(DashboardTier.DETAILED, now),
    }


# ─── Analytics tiers ────────────────────────────────────────────

async def get_critical_analytics(db: AsyncSession, now: datetime) -> dict:
    since = window_start(now, KPI_WINDOW_DAYS)
    kpis = compute_critical_kpis(
        total_users=await count_profiles(db),
        recent_activity_count=await count_activities(db, since=since),
        new_users=await count_profiles(db, since=since),
    )
    return {"kpis": kpis, "metadata": tier_metadata(DashboardTier.CRITICAL, now)}


async def get_secondary_analytics(
    db: AsyncSession, now: datetime, days: int, segment: str | None = None,
) -> dict:
    metrics = await get_analytics(db, now, days, segment)
    return {
        "analytics": metrics,
        "totals": totals_by_metric([
            {"metric_name": m.metric_name, "metric_value": m.metric_value}
            for m in metrics
        ]),
        "metadata": tier_metadata(DashboardTier.SECONDARY, now),
    }


async def get_detailed_analytics(
    db: AsyncSession,
    now: datetime,
    metric: str,
    start: date,
    end: date,
    segment: str | None = None,
) -> dict:
    """Daily series of one metric between two dates, inclusive, zero-filled."""
    if start > end:
        raise InputValidationError("start must not be after end", "start")
    if (end - start).days + 1 > MAX_DETAILED_DAYS:
        raise InputValidationError(
            f"date range must not exceed {MAX_DETAILED_DAYS} days", "end",
        )
    query = select(AnalyticsMetric).where(
        AnalyticsMetric.metric_name == metric,
        AnalyticsMetric.metric_date >= datetime.combine(start, time.min, tzinfo=timezone.utc),
        AnalyticsMetric.metric_date <= datetime.combine(end, time.max, tzinfo=timezone.utc),
    )
    if segment:
        query = query.where(AnalyticsMetric.metric_type == segment)
    result = await db.execute(query)
    rows = [
        {"metric_date": m.metric_date, "metric_value": m.metric_value}
        for m in result.scalars().all()
    ]
    return {
        "metric": metric,
        "detailed_data": daily_series(rows, start, end),
        "metadata": tier_metadata(DashboardTier.DETAILED, now),
    }
