"""Admin Console API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ConsoleError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and identity client initialized on startup, closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Request timing registered as HTTP middleware so every route is measured
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.request_metrics import record_request_metrics
from app.api.routes import (
    admin_dashboard, admin_users, auth, health, monitoring, profile,
)
from app.config import get_settings
from app.infrastructure.database import close_db, init_db
from app.infrastructure.identity_client import close_identity, init_identity
from app.infrastructure.observability import setup_logging
from app.services.monitoring import metrics_collector
from app.services.request_context import configure_context

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    init_identity(
        settings.identity_url,
        settings.identity_service_key,
        settings.identity_jwt_secret,
        jwt_audience=settings.identity_jwt_audience,
        timeout_seconds=settings.identity_timeout_seconds,
        max_retries=settings.identity_max_retries,
        base_delay_ms=settings.identity_base_delay_ms,
        max_delay_ms=settings.identity_max_delay_ms,
    )
    configure_context(
        settings.context_cache_ttl_seconds,
        settings.context_cache_max_entries,
        settings.slow_context_ms,
    )
    metrics_collector.enabled = settings.collect_performance_metrics
    logger.info("Admin Console API started")
    yield
    await close_identity()
    await close_db()
    logger.info("Admin Console API shutting down")


app = FastAPI(
    title="Admin Console API", version=get_settings().app_version, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(record_request_metrics)

app.include_router(health.router)
app.include_router(monitoring.router)
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(admin_users.router)
app.include_router(admin_dashboard.router)

register_error_handlers(app)
