"""Activity Log — audit entries written alongside the mutation they describe.

Invariants:
    - record_activity only adds to the session; the caller's commit persists both
      the mutation and its audit entry, or neither
    - log_session_event is for activities with no accompanying mutation
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType
from app.models.activity import Activity


def record_activity(
    db: AsyncSession,
    user_id: UUID,
    activity_type: ActivityType,
    description: str,
    details: dict | None = None,
) -> Activity:
    activity = Activity(
        user_id=user_id,
        activity_type=activity_type.value,
        description=description,
        details=details or {},
    )
    db.add(activity)
    return activity


async def list_user_activities(
    db: AsyncSession, user_id: UUID, limit: int,
) -> list[Activity]:
    """A user's own activities, newest first."""
    result = await db.execute(
        select(Activity)
        .where(Activity.user_id == user_id)
        .order_by(Activity.created_at.desc())
        .limit(limit),
    )
    return list(result.scalars().all())


async def log_session_event(
    db: AsyncSession,
    user_id: UUID,
    activity_type: ActivityType,
    description: str,
) -> None:
    """Record and commit a standalone activity (login/logout)."""
    record_activity(db, user_id, activity_type, description)
    await db.commit()
