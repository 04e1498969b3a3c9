"""User Schemas — admin user management and self-service profile payloads.

Invariants:
    - Emails: trimmed, lower-cased, shape-checked
    - password >= 8 chars; first/last name non-blank on create
    - mobile_no and date_of_birth accept "" as "not provided"
    - Update payloads distinguish "omitted" from "set": use model_dump(exclude_unset=True)

Design Decisions:
    - Regex email check over email-validator: deliverability lookups are the identity service's job
"""

import re
from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.domain_types import UserRole

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MOBILE_PATTERN = r"^\+?[1-9]\d{1,14}$"


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not v:
        raise ValueError("Email is required")
    if not _EMAIL_RE.match(v):
        raise ValueError("Invalid email address")
    return v


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class CreateUserRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    mobile_no: str | None = Field(None, pattern=MOBILE_PATTERN)
    date_of_birth: date | None = None
    role: UserRole

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v

    @field_validator("mobile_no", "date_of_birth", mode="before")
    @classmethod
    def empty_means_absent(cls, v):
        return _blank_to_none(v)


class UpdateUserRoleRequest(BaseModel):
    role: UserRole


class UpdateUserProfileRequest(BaseModel):
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    mobile_no: str | None = Field(None, pattern=MOBILE_PATTERN)
    date_of_birth: date | None = None

    @field_validator("mobile_no", "date_of_birth", mode="before")
    @classmethod
    def empty_means_absent(cls, v):
        return _blank_to_none(v)


class SelfProfileUpdateRequest(BaseModel):
    """What a signed-in user may change on their own profile."""
    full_name: str = Field(min_length=2, max_length=100)
    avatar_url: str | None = Field(None, max_length=2048)

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("avatar_url")
    @classmethod
    def check_avatar_url(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return v
        if not re.match(r"^https?://\S+$", v):
            raise ValueError("Invalid URL")
        return v


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    email: str
    full_name: str | None
    avatar_url: str | None
    role: UserRole
    first_name: str | None
    last_name: str | None
    mobile_no: str | None
    date_of_birth: date | None
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    users: list[ProfileResponse]
    total: int
    pages: int


class DeleteUserResponse(BaseModel):
    success: Literal[True] = True
