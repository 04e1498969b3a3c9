"""Self-Service — signed-in users reading and editing their own profile."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType
from app.core.errors import ResourceNotFoundError
from app.models.profile import Profile
from app.schemas.users import SelfProfileUpdateRequest
from app.services.activity_log import record_activity
from app.services.request_context import invalidate_cached_profile


async def update_own_profile(
    db: AsyncSession, user_id: UUID, body: SelfProfileUpdateRequest,
) -> Profile:
    """Update full_name (and avatar_url when sent) for the caller's profile."""
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise ResourceNotFoundError("Profile", str(user_id))

    profile.full_name = body.full_name
    if "avatar_url" in body.model_fields_set:
        profile.avatar_url = body.avatar_url or None
    profile.updated_at = datetime.now(timezone.utc)
    record_activity(
        db, user_id, ActivityType.PROFILE_UPDATE, "User updated profile",
    )
    await db.commit()
    invalidate_cached_profile(user_id)
    return profile
