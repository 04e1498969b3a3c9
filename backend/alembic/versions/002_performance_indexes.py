"""Indexes for admin listing, activity feeds, and analytics windows.

Revision ID: 002_performance_indexes
Revises: 001_initial
Create Date: 2025-10-30

"""
from typing import Sequence, Union

from alembic import op

revision: str = "002_performance_indexes"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# (index name, table, columns)
_INDEXES = [
    ("ix_profiles_user_id", "profiles", ["user_id"]),
    ("ix_profiles_email", "profiles", ["email"]),
    ("ix_profiles_role", "profiles", ["role"]),
    ("ix_profiles_created_at", "profiles", ["created_at"]),
    ("ix_activities_user_id", "activities", ["user_id"]),
    ("ix_activities_activity_type", "activities", ["activity_type"]),
    ("ix_activities_created_at", "activities", ["created_at"]),
    ("ix_analytics_metrics_metric_date", "analytics_metrics", ["metric_date"]),
    ("idx_analytics_date_type", "analytics_metrics", ["metric_date", "metric_type"]),
]


def upgrade() -> None:
    for name, table, columns in _INDEXES:
        op.create_index(name, table, columns)


def downgrade() -> None:
    for name, table, _ in reversed(_INDEXES):
        op.drop_index(name, table_name=table)
