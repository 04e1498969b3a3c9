"""Request Context — per-request {db, user, profile} construction with profile caching and timing.

Invariants:
    - Missing, malformed, or expired tokens yield an anonymous context (never raise)
    - Database failures while loading the profile propagate (DatabaseError -> 503)
    - Profiles cached per identity user id for the configured TTL; writes invalidate
    - Every build is timed; builds slower than slow_context_ms are logged as warnings

Design Decisions:
    - Token from Authorization header first, then the access_token cookie
    - Cache and timing stats are module-level: single-process uvicorn, reset on restart
"""

import logging
import time
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context_timing import ContextTimingStats
from app.core.errors import AuthenticationError
from app.core.profile_cache import ProfileCache
from app.infrastructure.identity_client import AuthUser, IdentityClient
from app.models.profile import Profile

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"

_profile_cache = ProfileCache()
_timing = ContextTimingStats()


@dataclass
class RequestContext:
    """What every procedure receives. user/profile are None for anonymous callers."""
    db: AsyncSession
    user: AuthUser | None
    profile: Profile | None
    context_time_ms: float = 0.0
    cache_hit: bool = False
    access_token: str | None = None


def configure_context(
    ttl_seconds: float, max_entries: int, slow_context_ms: float,
) -> None:
    """Reset cache and timing with new limits (called on startup)."""
    global _profile_cache, _timing
    _profile_cache = ProfileCache(ttl_seconds, max_entries)
    _timing = ContextTimingStats(slow_threshold_ms=slow_context_ms)


def extract_access_token(
    authorization: str | None, cookie_token: str | None,
) -> str | None:
    """Bearer token from the header, else the cookie, else None."""
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return cookie_token or None


async def load_profile(
    db: AsyncSession, user_id: UUID, now: float | None = None,
) -> tuple[Profile | None, bool]:
    """Profile for an identity user. Returns (profile, cache_hit)."""
    now = time.time() if now is None else now
    cached = _profile_cache.get(user_id, now)
    if cached is not None:
        return cached, True
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        _profile_cache.put(user_id, profile, now)
    return profile, False


def invalidate_cached_profile(user_id: UUID) -> None:
    _profile_cache.invalidate(user_id)


async def build_request_context(
    db: AsyncSession,
    identity: IdentityClient,
    authorization: str | None = None,
    cookie_token: str | None = None,
) -> RequestContext:
    started = time.perf_counter()
    token = extract_access_token(authorization, cookie_token)
    user: AuthUser | None = None
    profile: Profile | None = None
    cache_hit = False

    if token:
        try:
            user = identity.verify_access_token(token)
        except AuthenticationError as e:
            logger.debug(f"Anonymous context: {e.message}")
    if user:
        profile, cache_hit = await load_profile(db, user.id)

    duration_ms = (time.perf_counter() - started) * 1000
    if _timing.record(duration_ms, cache_hit):
        logger.warning(
            f"Slow request context: {duration_ms:.2f}ms",
            extra={
                "duration_ms": round(duration_ms, 2),
                "user_id": str(user.id) if user else None,
            },
        )
    return RequestContext(
        db=db, user=user, profile=profile,
        context_time_ms=duration_ms, cache_hit=cache_hit,
        access_token=token if user else None,
    )


def auth_performance_stats() -> dict:
    return _timing.snapshot(cache_size=len(_profile_cache))
