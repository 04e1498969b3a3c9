"""AnalyticsMetric ORM — daily metric values feeding the analytics dashboards.

Invariants:
    - metric_date is the instant the value applies to (indexed for window queries)
    - metric_type optionally segments a metric (e.g. "web", "mobile")
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Float, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class AnalyticsMetric(Base):
    __tablename__ = "analytics_metrics"
    __table_args__ = (
        Index("idx_analytics_date_type", "metric_date", "metric_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    metric_name: Mapped[str] = mapped_column(String(100), nullable=False)
    metric_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    metric_value: Mapped[float] = mapped_column(Float, nullable=False)
    metric_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True,
    )
    details: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
