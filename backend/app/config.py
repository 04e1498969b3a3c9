"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://console:console@db:5432/console"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Identity service (hosted auth)
    identity_url: str = "http://localhost:54321"
    identity_service_key: str = "service-role-placeholder"
    identity_jwt_secret: str = "jwt-secret-placeholder"
    identity_jwt_audience: str = "authenticated"
    identity_timeout_seconds: int = 10
    identity_max_retries: int = 2
    identity_base_delay_ms: int = 200
    identity_max_delay_ms: int = 5_000

    # Request context
    context_cache_ttl_seconds: int = 300
    context_cache_max_entries: int = 100
    slow_context_ms: int = 500

    # Monitoring
    environment: str = "development"
    app_version: str = "1.0.0"
    collect_performance_metrics: bool = True
    error_rate_threshold: float = 0.05
    response_time_threshold_ms: int = 2000
    memory_usage_threshold: float = 0.8

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
