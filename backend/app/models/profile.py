"""Profile ORM — application-level user record, distinct from the identity service's user.

Invariants:
    - id is the profile's own UUID; user_id is the identity service user id (unique)
    - role is "admin" or "user" (default "user")
    - full_name mirrors first_name/last_name whenever either is written
    - updated_at refreshed on every write through the service layer

Design Decisions:
    - No FK to the identity service's users table: it lives in another system
    - email indexed for duplicate checks and admin search
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """Profile row — one per identity user."""
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, unique=True, index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True,
    )
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    role: Mapped[str] = mapped_column(
        String(10), nullable=False, default="user", index=True,
    )
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    mobile_no: Mapped[str | None] = mapped_column(String(20), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
