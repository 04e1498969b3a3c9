"""Activity ORM — audit log of user and admin actions.

Invariants:
    - user_id is the actor's identity user id (matches profiles.user_id, not profiles.id)
    - activity_type is one of ActivityType values
    - details is stored in the `metadata` column (name reserved on declarative classes)

Design Decisions:
    - actor relationship is view-only and joins on user_id: activities outlive deleted profiles
"""

import uuid
from typing import Optional
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Activity(Base):
    """Audit log entry."""
    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    activity_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    actor: Mapped[Optional["Profile"]] = relationship(
        "Profile",
        primaryjoin="foreign(Activity.user_id) == Profile.user_id",
        viewonly=True,
        lazy="selectin",
    )
