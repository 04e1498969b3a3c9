"""Dashboard Schemas — stats, activity feed, analytics, and tiered payloads.

Invariants:
    - Every tiered payload carries metadata{tier, fetched_at, cache_expiry}
    - cache_expiry is epoch milliseconds
"""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.core.domain_types import DashboardTier


class ActorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: str
    full_name: str | None


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: UUID
    activity_type: str
    description: str | None
    metadata: dict = Field(default_factory=dict, validation_alias=AliasChoices("details", "metadata"))
    created_at: datetime
    profile: ActorSummary | None = Field(None, validation_alias=AliasChoices("actor", "profile"))


class AnalyticsMetricResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    metric_name: str
    metric_type: str | None
    metric_value: float
    metric_date: datetime
    metadata: dict = Field(default_factory=dict, validation_alias=AliasChoices("details", "metadata"))
    created_at: datetime


class AdminStats(BaseModel):
    total_users: int
    total_activities: int
    today_activities: int


class DashboardMetadata(BaseModel):
    fetched_at: datetime
    version: str
    cache_expiry: int


class TierMetadata(BaseModel):
    tier: DashboardTier
    fetched_at: datetime
    cache_expiry: int


class DashboardResponse(BaseModel):
    stats: AdminStats
    analytics: list[AnalyticsMetricResponse]
    recent_activities: list[ActivityResponse]
    metadata: DashboardMetadata


class CriticalDashboardResponse(BaseModel):
    total_users: int
    active_users: int
    metadata: TierMetadata


class SecondaryDashboardResponse(BaseModel):
    total_activities: int
    today_activities: int
    analytics: list[AnalyticsMetricResponse]
    metadata: TierMetadata


class DetailedDashboardResponse(BaseModel):
    recent_activities: list[ActivityResponse]
    metadata: TierMetadata


class AnalyticsKpis(BaseModel):
    user_engagement_rate: float
    page_views: int
    unique_visitors: int
    new_users: int
    returning_users: int


class CriticalAnalyticsResponse(BaseModel):
    kpis: AnalyticsKpis
    metadata: TierMetadata


class SecondaryAnalyticsResponse(BaseModel):
    analytics: list[AnalyticsMetricResponse]
    totals: dict[str, float]
    metadata: TierMetadata


class SeriesPoint(BaseModel):
    date: str
    value: float


class DetailedAnalyticsResponse(BaseModel):
    metric: str
    detailed_data: list[SeriesPoint]
    metadata: TierMetadata
