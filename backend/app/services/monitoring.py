"""Monitoring — process introspection, health checks, and the shared metrics collector.

Invariants:
    - Overall health is the worst individual check (healthy < degraded < unhealthy)
    - Database unreachable -> unhealthy; memory over threshold or identity client
      missing -> degraded
    - Every health run records a memory_usage sample so alert thresholds have data

Design Decisions:
    - psutil for process stats: uptime, RSS/VMS, CPU times in one portable API
    - Memory ratio is RSS over total system memory
"""

import logging
import os
import time
from datetime import datetime, timezone

import psutil

from app.core.alerts import AlertThresholds, check_thresholds
from app.core.domain_types import HealthStatus
from app.core.metrics_collector import MetricsCollector
from app.infrastructure import database, identity_client

logger = logging.getLogger(__name__)

_SEVERITY_ORDER = [HealthStatus.HEALTHY, HealthStatus.DEGRADED, HealthStatus.UNHEALTHY]

metrics_collector = MetricsCollector()


def _process() -> psutil.Process:
    return psutil.Process(os.getpid())


def process_uptime() -> float:
    """Seconds since this process started."""
    return max(time.time() - _process().create_time(), 0.0)


def memory_snapshot() -> dict:
    info = _process().memory_info()
    total = psutil.virtual_memory().total
    return {
        "rss": info.rss,
        "vms": info.vms,
        "system_total": total,
        "usage_ratio": info.rss / total if total else 0.0,
    }


def cpu_snapshot() -> dict:
    times = _process().cpu_times()
    return {"user": times.user, "system": times.system}


def worst_status(statuses: list[HealthStatus]) -> HealthStatus:
    return max(statuses, key=_SEVERITY_ORDER.index, default=HealthStatus.HEALTHY)


class HealthChecker:
    """Runs the database, identity, and memory checks."""

    def __init__(self, memory_threshold: float = 0.8):
        self.memory_threshold = memory_threshold

    async def perform_health_check(self) -> dict:
        checks = {
            "database": await self._check_database(),
            "identity_service": self._check_identity(),
            "memory": self._check_memory(),
        }
        status = worst_status([HealthStatus(c["status"]) for c in checks.values()])
        if status != HealthStatus.HEALTHY:
            logger.warning(f"Health check {status.value}: {checks}")
        return {
            "status": status,
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def _check_database(self) -> dict:
        if database.db_manager is None:
            return {"status": HealthStatus.UNHEALTHY.value, "message": "Database not initialized"}
        ok, latency_ms = await database.db_manager.health_check()
        if not ok:
            return {"status": HealthStatus.UNHEALTHY.value, "message": "Database unreachable"}
        return {
            "status": HealthStatus.HEALTHY.value,
            "message": "Database connection OK",
            "latency_ms": round(latency_ms, 2),
        }

    def _check_identity(self) -> dict:
        if identity_client.identity_client is None:
            return {"status": HealthStatus.DEGRADED.value, "message": "Identity client not initialized"}
        return {"status": HealthStatus.HEALTHY.value, "message": "Identity client configured"}

    def _check_memory(self) -> dict:
        ratio = memory_snapshot()["usage_ratio"]
        metrics_collector.track_metric("memory_usage", ratio)
        if ratio > self.memory_threshold:
            return {
                "status": HealthStatus.DEGRADED.value,
                "message": f"High memory usage: {ratio * 100:.1f}%",
            }
        return {
            "status": HealthStatus.HEALTHY.value,
            "message": f"Memory usage: {ratio * 100:.1f}%",
        }


def current_alerts(thresholds: AlertThresholds) -> list[dict]:
    alerts = check_thresholds(metrics_collector.summary(), thresholds)
    for alert in alerts:
        logger.warning(f"Alert: {alert['message']}")
    return alerts
