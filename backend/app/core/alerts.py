"""Alert Thresholds — pure comparison of metric summaries against limits.

Invariants:
    - Only averages are compared; missing metrics never alert
    - Output order is stable: error_rate, response_time, memory_usage
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AlertThresholds:
    error_rate: float = 0.05
    response_time_ms: float = 2000
    memory_usage: float = 0.8


_CHECKS = (
    ("error_rate", "api_error_rate", "error_rate", "high"),
    ("response_time", "api_call_duration", "response_time_ms", "medium"),
    ("memory_usage", "memory_usage", "memory_usage", "high"),
)


def check_thresholds(summary: dict[str, dict], thresholds: AlertThresholds) -> list[dict]:
    """Return one alert dict per metric whose average exceeds its threshold."""
    alerts = []
    for alert_type, metric_name, attr, severity in _CHECKS:
        stats = summary.get(metric_name)
        if not stats:
            continue
        limit = getattr(thresholds, attr)
        if stats["avg"] > limit:
            alerts.append({
                "type": alert_type,
                "severity": severity,
                "message": f"{metric_name} average {stats['avg']:.3f} exceeds threshold {limit}",
                "value": stats["avg"],
                "threshold": limit,
            })
    return alerts
