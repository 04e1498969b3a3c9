"""Metrics Collector — in-process sample store with per-name summaries.

Invariants:
    - Samples kept per metric name, at most `max_samples` each (oldest dropped)
    - summary() never raises on empty series; names with no samples are omitted
    - Disabled collector records nothing

Design Decisions:
    - In-memory only: single-process uvicorn, numbers reset on restart
    - deque(maxlen) bounds memory without explicit pruning
"""

import time
from collections import deque
from dataclasses import dataclass, field


@dataclass
class MetricSample:
    name: str
    value: float
    tags: dict[str, str] = field(default_factory=dict)
    timestamp_ms: int = field(default_factory=lambda: int(time.time() * 1000))


class MetricsCollector:
    """Records named numeric samples and summarizes them."""

    def __init__(self, enabled: bool = True, max_samples: int = 1000):
        self.enabled = enabled
        self.max_samples = max_samples
        self._series: dict[str, deque[MetricSample]] = {}

    def track_metric(
        self, name: str, value: float, tags: dict[str, str] | None = None,
    ) -> None:
        if not self.enabled:
            return
        series = self._series.setdefault(name, deque(maxlen=self.max_samples))
        series.append(MetricSample(name, value, dict(tags or {})))

    def track_api_call(
        self, endpoint: str, method: str, duration_ms: float,
        status_code: int, user_id: str | None = None,
    ) -> None:
        self.track_metric("api_call_duration", duration_ms, {
            "endpoint": endpoint,
            "method": method,
            "status_code": str(status_code),
            "user_id": user_id or "anonymous",
        })
        self.track_metric("api_call_count", 1, {
            "endpoint": endpoint,
            "method": method,
            "status_code": str(status_code),
        })
        self.track_metric(
            "api_error_rate", 1 if status_code >= 500 else 0,
            {"endpoint": endpoint},
        )

    def summary(self) -> dict[str, dict]:
        """count/min/max/avg/latest per metric name, with the first sample's tags."""
        out: dict[str, dict] = {}
        for name, series in self._series.items():
            if not series:
                continue
            values = [s.value for s in series]
            out[name] = {
                "count": len(values),
                "min": min(values),
                "max": max(values),
                "avg": sum(values) / len(values),
                "latest": values[-1],
                "tags": series[0].tags,
            }
        return out

    def reset(self) -> None:
        self._series.clear()
