"""Auth — password sign-in and sign-out (public tier).

Invariants:
    - Invalid credentials -> 401 with a generic message (no account enumeration)
    - login and logout each write one activity when the caller is known
    - logout always answers {success: true}; identity sign-out failures are logged only
"""

import logging

from fastapi import APIRouter, Depends

from app.api.dependencies import get_request_context
from app.core.domain_types import ActivityType
from app.core.errors import ConsoleError
from app.infrastructure.identity_client import IdentityClient, get_identity_client
from app.schemas.auth import LoginRequest, LoginResponse, LogoutResponse
from app.services.activity_log import log_session_event
from app.services.request_context import RequestContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    ctx: RequestContext = Depends(get_request_context),
    identity: IdentityClient = Depends(get_identity_client),
):
    grant = await identity.sign_in_with_password(body.email, body.password)
    await log_session_event(ctx.db, grant.user.id, ActivityType.LOGIN, "User logged in")
    logger.info("User logged in", extra={"user_id": str(grant.user.id)})
    return LoginResponse(
        access_token=grant.access_token,
        refresh_token=grant.refresh_token,
        expires_in=grant.expires_in,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    ctx: RequestContext = Depends(get_request_context),
    identity: IdentityClient = Depends(get_identity_client),
):
    if ctx.user is not None:
        await log_session_event(
            ctx.db, ctx.user.id, ActivityType.LOGOUT, "User logged out",
        )
        try:
            await identity.sign_out(ctx.access_token)
        except ConsoleError as e:
            logger.warning(
                f"Identity sign-out failed: {e.message}",
                extra={"user_id": str(ctx.user.id), "error_code": e.code},
            )
    return LogoutResponse()
