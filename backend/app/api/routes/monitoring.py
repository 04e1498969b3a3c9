"""Monitoring Endpoints — aggregated health report and process/application metrics.

Invariants:
    - GET /api/health: 200 healthy, 206 degraded, 503 unhealthy, 500 if the checker itself fails
    - GET /api/metrics: 500 with {error, timestamp} if collection fails
    - Neither endpoint requires authentication (scraped by infrastructure)
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.core.alerts import AlertThresholds
from app.core.domain_types import HealthStatus
from app.services import monitoring
from app.services.request_context import auth_performance_stats

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["monitoring"])

_STATUS_CODES = {
    HealthStatus.HEALTHY: status.HTTP_200_OK,
    HealthStatus.DEGRADED: status.HTTP_206_PARTIAL_CONTENT,
    HealthStatus.UNHEALTHY: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health():
    settings = get_settings()
    try:
        report = await monitoring.HealthChecker(
            settings.memory_usage_threshold,
        ).perform_health_check()
        body = {
            "status": report["status"].value,
            "timestamp": report["timestamp"],
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": report["checks"],
            "uptime": monitoring.process_uptime(),
            "memory": monitoring.memory_snapshot(),
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "status": "error",
                "timestamp": _timestamp(),
                "error": "Health check failed",
            },
        )
    return JSONResponse(status_code=_STATUS_CODES[report["status"]], content=body)


@router.get("/metrics")
async def metrics():
    settings = get_settings()
    try:
        return {
            "timestamp": _timestamp(),
            "environment": settings.environment,
            "uptime": monitoring.process_uptime(),
            "memory": monitoring.memory_snapshot(),
            "cpu": monitoring.cpu_snapshot(),
            "version": settings.app_version,
            "metrics": monitoring.metrics_collector.summary(),
            "auth": auth_performance_stats(),
            "alerts": monitoring.current_alerts(AlertThresholds(
                error_rate=settings.error_rate_threshold,
                response_time_ms=settings.response_time_threshold_ms,
                memory_usage=settings.memory_usage_threshold,
            )),
        }
    except Exception as e:
        logger.error(f"Metrics collection failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Metrics collection failed", "timestamp": _timestamp()},
        )
