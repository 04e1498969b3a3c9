"""Root conftest — shared test configuration and fixtures.

Invariants:
    - Environment set before app.config is first imported (get_settings is cached)
    - Every test gets a fresh in-memory SQLite database
    - Profile cache, context timing, and metrics reset between tests
"""

import os

# Ensure tests don't accidentally use real credentials
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IDENTITY_URL", "http://identity.test")
os.environ.setdefault("IDENTITY_SERVICE_KEY", "service-key-test")
os.environ.setdefault(
    "IDENTITY_JWT_SECRET", "test-jwt-secret-0123456789abcdef0123456789",
)
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import datetime, timedelta, timezone  # noqa: E402
from uuid import uuid4  # noqa: E402

import jwt  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, create_async_engine, async_sessionmaker,
)

from app.config import get_settings  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.infrastructure.identity_client import IdentityClient  # noqa: E402
from app.models.profile import Profile  # noqa: E402
from app.services import monitoring  # noqa: E402
from app.services.request_context import configure_context  # noqa: E402
from tests.fake_identity import FakeIdentityService  # noqa: E402

JWT_SECRET = os.environ["IDENTITY_JWT_SECRET"]


def _encode_token(
    user_id, email: str | None = None, expires_in: int = 3600,
    audience: str = "authenticated", secret: str = JWT_SECRET,
) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "aud": audience,
        "exp": now + timedelta(seconds=expires_in),
        "iat": now,
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def make_token():
    """Sign an access token the way the identity service would."""
    return _encode_token


@pytest.fixture
def auth_headers():
    """Bearer header for a profile's identity user."""
    def _headers(profile: Profile) -> dict[str, str]:
        return {"Authorization": f"Bearer {_encode_token(profile.user_id, profile.email)}"}
    return _headers


@pytest.fixture(autouse=True)
def _reset_process_state():
    settings = get_settings()
    configure_context(
        settings.context_cache_ttl_seconds,
        settings.context_cache_max_entries,
        settings.slow_context_ms,
    )
    monitoring.metrics_collector.reset()
    monitoring.metrics_collector.enabled = True
    yield


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def identity_service():
    return FakeIdentityService(JWT_SECRET)


@pytest.fixture
async def identity(identity_service):
    client = IdentityClient(
        "http://identity.test", "service-key-test", JWT_SECRET,
        max_retries=2, base_delay_ms=1, max_delay_ms=2,
        transport=identity_service.transport(),
    )
    yield client
    await client.aclose()


async def _add_profile(db, role: str, email: str, **fields) -> Profile:
    profile = Profile(
        user_id=uuid4(), email=email, role=role,
        created_at=fields.pop("created_at", datetime.now(timezone.utc)),
        **fields,
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


@pytest.fixture
async def admin_profile(test_db):
    return await _add_profile(
        test_db, "admin", "admin@example.com",
        first_name="Ada", last_name="Admin", full_name="Ada Admin",
    )


@pytest.fixture
async def user_profile(test_db):
    return await _add_profile(
        test_db, "user", "user@example.com",
        first_name="Uma", last_name="User", full_name="Uma User",
    )


@pytest.fixture
def add_profile(test_db):
    async def _factory(role: str = "user", email: str | None = None, **fields):
        return await _add_profile(
            test_db, role, email or f"{uuid4().hex[:8]}@example.com", **fields,
        )
    return _factory
