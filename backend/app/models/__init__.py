"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.profile import Profile  # noqa: F401
from app.models.activity import Activity  # noqa: F401
from app.models.analytics_metric import AnalyticsMetric  # noqa: F401
