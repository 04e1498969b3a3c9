"""Request Metrics Middleware — times every HTTP request into the metrics collector.

Invariants:
    - One api_call_duration + api_call_count sample per request, tagged endpoint/method/status
    - Requests that raise are recorded with status 500, then the exception propagates
    - Route templates (not raw paths) used as endpoint tags when matched, bounding tag cardinality
"""

import logging
import time

from fastapi import Request

from app.services.monitoring import metrics_collector

logger = logging.getLogger(__name__)


def _endpoint(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


async def record_request_metrics(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        metrics_collector.track_api_call(
            _endpoint(request), request.method,
            (time.perf_counter() - started) * 1000, 500,
        )
        raise
    duration_ms = (time.perf_counter() - started) * 1000
    metrics_collector.track_api_call(
        _endpoint(request), request.method, duration_ms, response.status_code,
    )
    logger.debug(
        "Request handled",
        extra={
            "endpoint": _endpoint(request),
            "method": request.method,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        },
    )
    return response
