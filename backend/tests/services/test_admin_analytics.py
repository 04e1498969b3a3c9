"""Admin analytics tests — stats, analytics windows, activity feed, dashboard tiers.

Tests cover:
    - get_stats: totals plus "today" counted from 00:00 UTC
    - get_analytics: trailing window, ascending order, segment filter
    - get_recent_activities: newest first, actor profile attached, optional limit
    - Tier payloads: critical/secondary/detailed dashboards and analytics
    - get_detailed_analytics: inclusive date range, zero-filled, rejects start > end
"""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.core.domain_types import DashboardTier
from app.core.errors import InputValidationError
from app.models.activity import Activity
from app.models.analytics_metric import AnalyticsMetric
from app.services import admin_analytics

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


async def _activity(db, user_id, created_at, description="did a thing", activity_type="data_view"):
    db.add(Activity(
        user_id=user_id, activity_type=activity_type,
        description=description, created_at=created_at,
    ))
    await db.commit()


async def _metric(db, name, value, when, metric_type=None):
    db.add(AnalyticsMetric(
        metric_name=name, metric_value=value, metric_date=when, metric_type=metric_type,
    ))
    await db.commit()


async def test_stats_today_starts_at_utc_midnight(test_db, admin_profile, user_profile):
    await _activity(test_db, user_profile.user_id, NOW - timedelta(hours=1))
    await _activity(test_db, user_profile.user_id, NOW.replace(hour=0, minute=0))
    await _activity(test_db, user_profile.user_id, NOW.replace(hour=0) - timedelta(seconds=1))

    stats = await admin_analytics.get_stats(test_db, NOW)
    assert stats == {"total_users": 2, "total_activities": 3, "today_activities": 2}


async def test_stats_empty(test_db):
    assert await admin_analytics.get_stats(test_db, NOW) == {
        "total_users": 0, "total_activities": 0, "today_activities": 0,
    }


async def test_analytics_window_and_order(test_db):
    await _metric(test_db, "visits", 3, NOW - timedelta(days=2))
    await _metric(test_db, "visits", 1, NOW - timedelta(days=6))
    await _metric(test_db, "visits", 9, NOW - timedelta(days=8))

    metrics = await admin_analytics.get_analytics(test_db, NOW, days=7)
    assert [m.metric_value for m in metrics] == [1, 3]


async def test_analytics_segment_filter(test_db):
    await _metric(test_db, "visits", 1, NOW - timedelta(days=1), metric_type="web")
    await _metric(test_db, "visits", 2, NOW - timedelta(days=1), metric_type="mobile")
    metrics = await admin_analytics.get_analytics(test_db, NOW, 7, segment="mobile")
    assert [m.metric_value for m in metrics] == [2]


async def test_recent_activities_newest_first_with_actor(test_db, admin_profile, user_profile):
    await _activity(test_db, user_profile.user_id, NOW - timedelta(hours=3), "oldest")
    await _activity(test_db, admin_profile.user_id, NOW - timedelta(hours=1), "newest")
    await _activity(test_db, user_profile.user_id, NOW - timedelta(hours=2), "middle")
    test_db.expire_all()

    activities = await admin_analytics.get_recent_activities(test_db, limit=2)
    assert [a.description for a in activities] == ["newest", "middle"]
    assert activities[0].actor.email == "admin@example.com"
    assert activities[1].actor.full_name == "Uma User"

    assert len(await admin_analytics.get_recent_activities(test_db)) == 3


async def test_recent_activity_of_deleted_user_has_no_actor(test_db):
    await _activity(test_db, uuid4(), NOW)
    test_db.expire_all()
    [activity] = await admin_analytics.get_recent_activities(test_db, 10)
    assert activity.actor is None


async def test_combined_dashboard(test_db, admin_profile):
    await _activity(test_db, admin_profile.user_id, NOW - timedelta(minutes=5))
    await _metric(test_db, "visits", 4, NOW - timedelta(days=1))

    payload = await admin_analytics.get_dashboard(test_db, NOW, 7, 10)
    assert payload["stats"]["total_users"] == 1
    assert len(payload["analytics"]) == 1
    assert len(payload["recent_activities"]) == 1
    meta = payload["metadata"]
    assert meta["version"] == admin_analytics.DASHBOARD_VERSION
    assert meta["fetched_at"] == NOW
    assert meta["cache_expiry"] == int(NOW.timestamp() * 1000) + 30_000


async def test_critical_dashboard_counts_distinct_active_users(
    test_db, admin_profile, user_profile,
):
    await _activity(test_db, user_profile.user_id, NOW - timedelta(days=1))
    await _activity(test_db, user_profile.user_id, NOW - timedelta(days=2))
    await _activity(test_db, admin_profile.user_id, NOW - timedelta(days=10))

    payload = await admin_analytics.get_critical_dashboard(test_db, NOW)
    assert payload["total_users"] == 2
    assert payload["active_users"] == 1
    assert payload["metadata"]["tier"] is DashboardTier.CRITICAL
    assert payload["metadata"]["cache_expiry"] == int(NOW.timestamp() * 1000) + 15_000


async def test_active_users_counts_each_actor_once(test_db, admin_profile, user_profile):
    for hours in (1, 2, 3):
        await _activity(test_db, user_profile.user_id, NOW - timedelta(hours=hours))
    await _activity(test_db, admin_profile.user_id, NOW - timedelta(days=6))
    await _activity(test_db, uuid4(), NOW - timedelta(days=8))

    assert await admin_analytics.count_active_users(test_db, NOW, 7) == 2
    assert await admin_analytics.count_active_users(test_db, NOW, 1) == 1


async def test_secondary_and_detailed_dashboards(test_db, user_profile):
    await _activity(test_db, user_profile.user_id, NOW - timedelta(hours=1))
    await _activity(test_db, user_profile.user_id, NOW - timedelta(days=3))

    secondary = await admin_analytics.get_secondary_dashboard(test_db, NOW, 7)
    assert secondary["total_activities"] == 2
    assert secondary["today_activities"] == 1
    assert secondary["metadata"]["tier"] is DashboardTier.SECONDARY

    detailed = await admin_analytics.get_detailed_dashboard(test_db, NOW)
    assert len(detailed["recent_activities"]) == 2
    assert detailed["metadata"]["cache_expiry"] == int(NOW.timestamp() * 1000) + 60_000


async def test_critical_analytics_kpis(test_db, add_profile, user_profile):
    await add_profile(email="fresh@example.com", created_at=NOW - timedelta(days=3))
    await add_profile(email="old@example.com", created_at=NOW - timedelta(days=90))
    for hours in (1, 2, 3):
        await _activity(test_db, user_profile.user_id, NOW - timedelta(hours=hours))
    await _activity(test_db, user_profile.user_id, NOW - timedelta(days=45))

    payload = await admin_analytics.get_critical_analytics(test_db, NOW)
    kpis = payload["kpis"]
    # user_profile is created at real "now", which is after NOW - 30 days as well
    assert kpis["unique_visitors"] == 3
    assert kpis["page_views"] == 3
    assert kpis["user_engagement_rate"] == pytest.approx(100.0)
    assert kpis["new_users"] + kpis["returning_users"] == 3


async def test_secondary_analytics_totals(test_db):
    await _metric(test_db, "visits", 3, NOW - timedelta(days=1), "web")
    await _metric(test_db, "visits", 4, NOW - timedelta(days=2), "web")
    await _metric(test_db, "signups", 1, NOW - timedelta(days=2), "web")
    await _metric(test_db, "visits", 100, NOW - timedelta(days=2), "mobile")

    payload = await admin_analytics.get_secondary_analytics(test_db, NOW, 30, segment="web")
    assert payload["totals"] == {"signups": 1, "visits": 7}
    assert len(payload["analytics"]) == 3


async def test_detailed_analytics_series(test_db):
    await _metric(test_db, "visits", 2, datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc))
    await _metric(test_db, "visits", 5, datetime(2026, 3, 3, 23, 59, tzinfo=timezone.utc))
    await _metric(test_db, "visits", 7, datetime(2026, 3, 4, 0, 0, tzinfo=timezone.utc))
    await _metric(test_db, "signups", 1, datetime(2026, 3, 2, tzinfo=timezone.utc))

    payload = await admin_analytics.get_detailed_analytics(
        test_db, NOW, "visits", date(2026, 3, 1), date(2026, 3, 3),
    )
    assert payload["metric"] == "visits"
    assert payload["detailed_data"] == [
        {"date": "2026-03-01", "value": 2},
        {"date": "2026-03-02", "value": 0.0},
        {"date": "2026-03-03", "value": 5},
    ]
    assert payload["metadata"]["tier"] is DashboardTier.DETAILED


async def test_detailed_analytics_rejects_reversed_range(test_db):
    with pytest.raises(InputValidationError):
        await admin_analytics.get_detailed_analytics(
            test_db, NOW, "visits", date(2026, 3, 5), date(2026, 3, 1),
        )


async def test_detailed_analytics_rejects_range_over_cap(test_db):
    start = date(2024, 1, 1)
    with pytest.raises(InputValidationError) as exc:
        await admin_analytics.get_detailed_analytics(
            test_db, NOW, "visits", start,
            start + timedelta(days=admin_analytics.MAX_DETAILED_DAYS),
        )
    assert exc.value.field == "end"


async def test_detailed_analytics_accepts_full_cap(test_db):
    start = date(2024, 1, 1)
    payload = await admin_analytics.get_detailed_analytics(
        test_db, NOW, "visits", start,
        start + timedelta(days=admin_analytics.MAX_DETAILED_DAYS - 1),
    )
    assert len(payload["detailed_data"]) == admin_analytics.MAX_DETAILED_DAYS


async def test_detailed_analytics_ending_on_last_calendar_day(test_db):
    await _metric(test_db, "visits", 4, datetime(9999, 12, 31, 18, 0, tzinfo=timezone.utc))

    payload = await admin_analytics.get_detailed_analytics(
        test_db, NOW, "visits", date(9999, 12, 30), date.max,
    )
    assert payload["detailed_data"] == [
        {"date": "9999-12-30", "value": 0.0},
        {"date": "9999-12-31", "value": 4},
    ]
