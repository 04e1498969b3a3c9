"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class UserRole(str, Enum):
    """Profile roles — maps to DB `role` column."""
    ADMIN = "admin"
    USER = "user"


class RoleFilter(str, Enum):
    """User listing filter: a concrete role or every role."""
    ADMIN = "admin"
    USER = "user"
    ALL = "all"


class ActivityType(str, Enum):
    """Audit log entry kinds — maps to DB `activity_type` column."""
    LOGIN = "login"
    LOGOUT = "logout"
    PROFILE_UPDATE = "profile_update"
    DATA_VIEW = "data_view"
    DATA_EDIT = "data_edit"


class HealthStatus(str, Enum):
    """Health check outcome, ordered from best to worst."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class DashboardTier(str, Enum):
    """Progressive loading tiers for dashboard and analytics payloads."""
    CRITICAL = "critical"
    SECONDARY = "secondary"
    DETAILED = "detailed"
