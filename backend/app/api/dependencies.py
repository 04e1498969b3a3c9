"""Authorization Chain — public, authenticated, and admin-only procedure tiers.

Invariants:
    - get_request_context (public): always succeeds, user/profile may be None
    - require_user (authenticated): user AND profile present, else 401 UNAUTHORIZED
    - require_admin (admin-only): require_user plus profile.role == "admin", else 403 FORBIDDEN
    - Each tier depends on the previous one; FastAPI caches the context per request

Design Decisions:
    - Tiers as nested Depends() rather than middleware: routers opt in per endpoint
"""

import logging
from dataclasses import dataclass

from fastapi import Cookie, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.domain_types import UserRole
from app.core.errors import (
    AuthenticationRequiredError, ErrorContext, PermissionDeniedError,
)
from app.infrastructure.database import get_db
from app.infrastructure.identity_client import (
    AuthUser, IdentityClient, get_identity_client,
)
from app.models.profile import Profile
from app.services.request_context import (
    ACCESS_TOKEN_COOKIE, RequestContext, build_request_context,
)

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedContext(RequestContext):
    """RequestContext narrowed: user and profile are guaranteed."""
    user: AuthUser
    profile: Profile


async def get_request_context(
    db: AsyncSession = Depends(get_db),
    identity: IdentityClient = Depends(get_identity_client),
    authorization: str | None = Header(None),
    access_token: str | None = Cookie(None, alias=ACCESS_TOKEN_COOKIE),
) -> RequestContext:
    """Public tier."""
    return await build_request_context(db, identity, authorization, access_token)


async def require_user(
    ctx: RequestContext = Depends(get_request_context),
) -> AuthenticatedContext:
    """Authenticated tier."""
    if ctx.context_time_ms > get_settings().slow_context_ms:
        logger.warning(
            f"Slow context in authenticated procedure: {ctx.context_time_ms:.2f}ms",
        )
    if ctx.user is None or ctx.profile is None:
        logger.debug(
            "Rejecting unauthenticated call",
            extra={"user_id": str(ctx.user.id) if ctx.user else None},
        )
        raise AuthenticationRequiredError(
            ErrorContext(context_time_ms=round(ctx.context_time_ms, 2)),
        )
    return AuthenticatedContext(
        db=ctx.db, user=ctx.user, profile=ctx.profile,
        context_time_ms=ctx.context_time_ms, cache_hit=ctx.cache_hit,
        access_token=ctx.access_token,
    )


async def require_admin(
    ctx: AuthenticatedContext = Depends(require_user),
) -> AuthenticatedContext:
    """Admin-only tier."""
    if ctx.profile.role != UserRole.ADMIN.value:
        raise PermissionDeniedError(
            user_role=ctx.profile.role, required_role=UserRole.ADMIN.value,
            context=ErrorContext(
                user_id=str(ctx.user.id),
                context_time_ms=round(ctx.context_time_ms, 2),
            ),
        )
    return ctx
