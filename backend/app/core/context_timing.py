"""Context Timing — rolling statistics for request-context construction.

Invariants:
    - Keeps the last `window` durations only
    - total_context_creations counts every build, including those evicted from the window
    - cache_hit_rate is a percentage in [0, 100]
"""

from collections import deque


class ContextTimingStats:
    """Aggregates per-request context build durations and cache hits."""

    def __init__(self, window: int = 100, slow_threshold_ms: float = 500):
        self.slow_threshold_ms = slow_threshold_ms
        self._durations: deque[float] = deque(maxlen=window)
        self.total = 0
        self.cache_hits = 0

    def record(self, duration_ms: float, cache_hit: bool) -> bool:
        """Record one build. Returns True when it was slow."""
        self.total += 1
        if cache_hit:
            self.cache_hits += 1
        self._durations.append(duration_ms)
        return duration_ms > self.slow_threshold_ms

    def snapshot(self, cache_size: int = 0) -> dict:
        durations = list(self._durations)
        avg = sum(durations) / len(durations) if durations else 0.0
        return {
            "total_context_creations": self.total,
            "average_context_time_ms": avg,
            "slow_context_creations": sum(
                1 for d in durations if d > self.slow_threshold_ms
            ),
            "cache_hits": self.cache_hits,
            "cache_hit_rate": (self.cache_hits / self.total * 100) if self.total else 0.0,
            "cache_size": cache_size,
        }
