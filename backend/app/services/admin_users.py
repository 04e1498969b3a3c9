"""Admin User Management — list, create, update, and delete profiles with audit entries.

Invariants:
    - Every mutation commits together with its data_edit activity
    - Unknown profile ids raise ResourceNotFoundError (404)
    - create_user: duplicate email rejected before touching the identity service
    - create_user: profile insert failure deletes the just-created identity user,
      then re-raises; a failed compensation is logged, never masks the original error
    - Cached profiles are invalidated after every committed write

Design Decisions:
    - Compensation is best-effort and not atomic with the identity call: between the
      identity create and the compensating delete, the identity user briefly exists
      without a profile (signs in as an anonymous-profile user, gets 401 on protected calls)
    - Deleting a user removes the profile only; the identity record stays with the
      identity service
"""

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType, RoleFilter, UserRole
from app.core.errors import (
    ConflictError, ConsoleError, DatabaseError, ResourceNotFoundError,
)
from app.core.pagination import page_bounds
from app.core.user_name import compute_full_name
from app.infrastructure.identity_client import IdentityClient
from app.models.profile import Profile
from app.schemas.users import CreateUserRequest
from app.services.activity_log import record_activity
from app.services.request_context import invalidate_cached_profile

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_users(
    db: AsyncSession,
    page: int,
    limit: int,
    search: str | None = None,
    role: RoleFilter = RoleFilter.ALL,
) -> tuple[list[Profile], int]:
    """One page of profiles, newest first, plus the total matching count."""
    conditions = []
    if search:
        pattern = f"%{_escape_like(search)}%"
        conditions.append(or_(
            Profile.email.ilike(pattern, escape="\\"),
            Profile.full_name.ilike(pattern, escape="\\"),
        ))
    if role != RoleFilter.ALL:
        conditions.append(Profile.role == role.value)

    total = await db.scalar(
        select(func.count()).select_from(Profile).where(*conditions),
    )
    offset, limit = page_bounds(page, limit)
    result = await db.execute(
        select(Profile)
        .where(*conditions)
        .order_by(Profile.created_at.desc())
        .offset(offset)
        .limit(limit),
    )
    return list(result.scalars().all()), total or 0


async def get_profile_or_404(db: AsyncSession, profile_id: UUID) -> Profile:
    profile = await db.get(Profile, profile_id)
    if profile is None:
        raise ResourceNotFoundError("Profile", str(profile_id))
    return profile


async def create_user(
    db: AsyncSession,
    identity: IdentityClient,
    actor_id: UUID,
    body: CreateUserRequest,
) -> Profile:
    """Create identity user, then profile; undo the identity user if the profile fails."""
    existing = await db.scalar(
        select(Profile.id).where(func.lower(Profile.email) == body.email),
    )
    if existing is not None:
        raise ConflictError(f"A user with email {body.email} already exists")

    auth_user = await identity.create_user(body.email, body.password, email_confirm=True)

    now = datetime.now(timezone.utc)
    profile = Profile(
        id=uuid4(),
        user_id=auth_user.id,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        full_name=compute_full_name(body.first_name, body.last_name),
        mobile_no=body.mobile_no,
        date_of_birth=body.date_of_birth,
        role=body.role.value,
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(profile)
        record_activity(
            db, actor_id, ActivityType.DATA_EDIT, "Admin created new user",
            {"new_user_id": str(auth_user.id)},
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            f"Profile creation failed, rolling back identity user: {e}",
            extra={"target_user_id": str(auth_user.id)},
        )
        await _delete_identity_user_quietly(identity, auth_user.id)
        raise DatabaseError("Profile creation error", "insert")

    logger.info(
        "Admin created user",
        extra={"user_id": str(actor_id), "target_user_id": str(auth_user.id)},
    )
    return profile


async def _delete_identity_user_quietly(identity: IdentityClient, user_id: UUID) -> None:
    try:
        await identity.delete_user(user_id)
    except ConsoleError as e:
        logger.error(
            f"Compensating identity delete failed, orphaned identity user: {e.message}",
            extra={"target_user_id": str(user_id), "error_code": e.code},
        )


async def update_user_role(
    db: AsyncSession, actor_id: UUID, profile_id: UUID, role: UserRole,
) -> Profile:
    profile = await get_profile_or_404(db, profile_id)
    profile.role = role.value
    profile.updated_at = datetime.now(timezone.utc)
    record_activity(
        db, actor_id, ActivityType.DATA_EDIT,
        f"Admin updated user role to {role.value}",
        {"target_user_id": str(profile_id)},
    )
    await db.commit()
    invalidate_cached_profile(profile.user_id)
    return profile


async def update_user_profile(
    db: AsyncSession, actor_id: UUID, profile_id: UUID, changes: dict,
) -> Profile:
    """Apply only the provided fields; updated_at always refreshed."""
    profile = await get_profile_or_404(db, profile_id)
    for field in ("first_name", "last_name", "mobile_no", "date_of_birth"):
        if field in changes:
            setattr(profile, field, changes[field])
    if "first_name" in changes or "last_name" in changes:
        profile.full_name = compute_full_name(profile.first_name, profile.last_name)
    profile.updated_at = datetime.now(timezone.utc)
    record_activity(
        db, actor_id, ActivityType.DATA_EDIT, "Admin updated user profile",
        {"target_user_id": str(profile_id)},
    )
    await db.commit()
    invalidate_cached_profile(profile.user_id)
    return profile


async def delete_user(db: AsyncSession, actor_id: UUID, profile_id: UUID) -> None:
    profile = await get_profile_or_404(db, profile_id)
    user_id = profile.user_id
    await db.delete(profile)
    record_activity(
        db, actor_id, ActivityType.DATA_EDIT, "Admin deleted user",
        {"deleted_user_id": str(profile_id)},
    )
    await db.commit()
    invalidate_cached_profile(user_id)
