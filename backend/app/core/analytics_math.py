"""Analytics Math — pure KPI and series computations over fetched rows.

Invariants:
    - No IO: inputs are counts or plain dicts already loaded by services
    - Engagement rate never divides by zero (user count floored at 1)
    - daily_series emits one point per day in range, zero-filled

Design Decisions:
    - Figures derive from stored data only; nothing is sampled or invented
"""

from collections import defaultdict
from datetime import date, datetime

from app.core.time_windows import iter_days


def compute_critical_kpis(
    total_users: int, recent_activity_count: int, new_users: int,
) -> dict:
    """KPIs for the critical analytics tier."""
    return {
        "user_engagement_rate": recent_activity_count / max(total_users, 1) * 100,
        "page_views": recent_activity_count,
        "unique_visitors": total_users,
        "new_users": new_users,
        "returning_users": max(total_users - new_users, 0),
    }


def totals_by_metric(metrics: list[dict]) -> dict[str, float]:
    """Sum metric_value per metric_name, keys sorted."""
    totals: dict[str, float] = defaultdict(float)
    for m in metrics:
        totals[m["metric_name"]] += m["metric_value"]
    return dict(sorted(totals.items()))


def daily_series(metrics: list[dict], start: date, end: date) -> list[dict]:
    """Per-day sums of metric_value between start and end inclusive."""
    by_day: dict[date, float] = defaultdict(float)
    for m in metrics:
        day = m["metric_date"]
        if isinstance(day, datetime):
            day = day.date()
        by_day[day] += m["metric_value"]
    return [
        {"date": d.isoformat(), "value": by_day.get(d, 0.0)}
        for d in iter_days(start, end)
    ]
