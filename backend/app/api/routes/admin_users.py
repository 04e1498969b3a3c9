"""Admin Users — user CRUD procedures, admin-only.

Invariants:
    - Every route depends on require_admin
    - Input validated by Pydantic/Query before reaching the service layer
    - Routes never contain business logic (delegate to services/admin_users)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import AuthenticatedContext, require_admin
from app.core.domain_types import RoleFilter
from app.core.pagination import page_count
from app.infrastructure.identity_client import IdentityClient, get_identity_client
from app.schemas.users import (
    CreateUserRequest, DeleteUserResponse, ProfileResponse,
    UpdateUserProfileRequest, UpdateUserRoleRequest, UserListResponse,
)
from app.services import admin_users

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin/users", tags=["admin-users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=200),
    role: RoleFilter = Query(RoleFilter.ALL),
    ctx: AuthenticatedContext = Depends(require_admin),
):
    """Paginated, searchable user listing."""
    users, total = await admin_users.list_users(ctx.db, page, limit, search, role)
    return UserListResponse(
        users=[ProfileResponse.model_validate(u) for u in users],
        total=total,
        pages=page_count(total, limit),
    )


@router.post(
    "", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: CreateUserRequest,
    ctx: AuthenticatedContext = Depends(require_admin),
    identity: IdentityClient = Depends(get_identity_client),
):
    profile = await admin_users.create_user(ctx.db, identity, ctx.user.id, body)
    return ProfileResponse.model_validate(profile)


@router.patch("/{profile_id}/role", response_model=ProfileResponse)
async def update_user_role(
    profile_id: UUID,
    body: UpdateUserRoleRequest,
    ctx: AuthenticatedContext = Depends(require_admin),
):
    profile = await admin_users.update_user_role(
        ctx.db, ctx.user.id, profile_id, body.role,
    )
    return ProfileResponse.model_validate(profile)


@router.patch("/{profile_id}", response_model=ProfileResponse)
async def update_user_profile(
    profile_id: UUID,
    body: UpdateUserProfileRequest,
    ctx: AuthenticatedContext = Depends(require_admin),
):
    """Partial update — omitted fields are left untouched."""
    profile = await admin_users.update_user_profile(
        ctx.db, ctx.user.id, profile_id, body.model_dump(exclude_unset=True),
    )
    return ProfileResponse.model_validate(profile)


@router.delete("/{profile_id}", response_model=DeleteUserResponse)
async def delete_user(
    profile_id: UUID,
    ctx: AuthenticatedContext = Depends(require_admin),
):
    await admin_users.delete_user(ctx.db, ctx.user.id, profile_id)
    return DeleteUserResponse()
