"""Profile — self-service procedures for the signed-in user (authenticated tier)."""

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import AuthenticatedContext, require_user
from app.schemas.dashboard import ActivityResponse
from app.schemas.users import ProfileResponse, SelfProfileUpdateRequest
from app.services.activity_log import list_user_activities
from app.services.self_service import update_own_profile

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(ctx: AuthenticatedContext = Depends(require_user)):
    return ProfileResponse.model_validate(ctx.profile)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    body: SelfProfileUpdateRequest,
    ctx: AuthenticatedContext = Depends(require_user),
):
    profile = await update_own_profile(ctx.db, ctx.user.id, body)
    return ProfileResponse.model_validate(profile)


@router.get("/activities", response_model=list[ActivityResponse])
async def get_activities(
    limit: int = Query(10, ge=1, le=100),
    ctx: AuthenticatedContext = Depends(require_user),
):
    activities = await list_user_activities(ctx.db, ctx.user.id, limit)
    return [ActivityResponse.model_validate(a) for a in activities]
