"""Admin user service tests — listing, create with compensation, updates, delete, audit entries.

Tests cover:
    - list_users: pagination, newest-first order, search on email/full_name, role filter
    - create_user: identity + profile + activity; duplicate email rejected up front
    - create_user: profile insert failure deletes the identity user (compensation),
      and a failing compensation still surfaces the original error
    - update_user_role / update_user_profile / delete_user: audit activity + cache invalidation
"""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.core.domain_types import RoleFilter, UserRole
from app.core.errors import ConflictError, DatabaseError, ResourceNotFoundError
from app.models.activity import Activity
from app.models.profile import Profile
from app.schemas.users import CreateUserRequest
from app.services import admin_users
from app.services.request_context import auth_performance_stats, load_profile


def _create_body(**overrides):
    data = {
        "email": "new@example.com",
        "password": "password123",
        "first_name": "Nia",
        "last_name": "New",
        "role": "user",
    }
    data.update(overrides)
    return CreateUserRequest(**data)


async def _activities(db):
    db.expire_all()
    result = await db.execute(select(Activity).order_by(Activity.created_at))
    return list(result.scalars().all())


# -- list_users ----------------------------------------------------------------

async def test_list_newest_first_and_paginated(test_db, add_profile):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    for i in range(5):
        await add_profile(email=f"u{i}@example.com", created_at=base + timedelta(days=i))

    users, total = await admin_users.list_users(test_db, page=1, limit=2)
    assert total == 5
    assert [u.email for u in users] == ["u4@example.com", "u3@example.com"]

    users, _ = await admin_users.list_users(test_db, page=3, limit=2)
    assert [u.email for u in users] == ["u0@example.com"]


async def test_list_search_matches_email_or_name(test_db, add_profile):
    await add_profile(email="grace@navy.mil", full_name="Grace Hopper")
    await add_profile(email="ada@example.com", full_name="Ada Lovelace")
    await add_profile(email="alan@example.com", full_name="Alan Turing")

    users, total = await admin_users.list_users(test_db, 1, 10, search="LOVE")
    assert total == 1
    assert users[0].email == "ada@example.com"

    users, total = await admin_users.list_users(test_db, 1, 10, search="example")
    assert total == 2


async def test_list_search_treats_wildcards_literally(test_db, add_profile):
    await add_profile(email="plain@example.com", full_name="Plain")
    await add_profile(email="under_score@example.com", full_name="Under")
    _, total = await admin_users.list_users(test_db, 1, 10, search="_")
    assert total == 1
    _, total = await admin_users.list_users(test_db, 1, 10, search="%")
    assert total == 0


async def test_list_role_filter(test_db, admin_profile, user_profile):
    users, total = await admin_users.list_users(test_db, 1, 10, role=RoleFilter.ADMIN)
    assert total == 1
    assert users[0].id == admin_profile.id
    _, total = await admin_users.list_users(test_db, 1, 10, role=RoleFilter.ALL)
    assert total == 2


async def test_list_empty(test_db):
    assert await admin_users.list_users(test_db, 1, 10) == ([], 0)


# -- create_user -------------------------------------------------------------

async def test_create_user(test_db, identity, identity_service, admin_profile):
    actor_id = admin_profile.user_id
    profile = await admin_users.create_user(
        test_db, identity, actor_id,
        _create_body(mobile_no="+15550100", date_of_birth="1990-01-02", role="admin"),
    )
    assert profile.user_id in identity_service.users
    assert profile.full_name == "Nia New"
    assert profile.role == "admin"
    assert profile.date_of_birth == date(1990, 1, 2)
    new_user_id = profile.user_id

    activities = await _activities(test_db)
    assert len(activities) == 1
    assert activities[0].user_id == actor_id
    assert activities[0].activity_type == "data_edit"
    assert activities[0].description == "Admin created new user"
    assert activities[0].details == {"new_user_id": str(new_user_id)}


async def test_create_duplicate_email_rejected_before_identity(
    test_db, identity, identity_service, admin_profile, add_profile,
):
    await add_profile(email="new@example.com")
    with pytest.raises(ConflictError):
        await admin_users.create_user(
            test_db, identity, admin_profile.user_id, _create_body(email="NEW@example.com"),
        )
    assert identity_service.calls == []


async def test_create_identity_conflict_propagates(
    test_db, identity, identity_service, admin_profile,
):
    identity_service.add_user("new@example.com", "password123")
    with pytest.raises(ConflictError):
        await admin_users.create_user(
            test_db, identity, admin_profile.user_id, _create_body(),
        )


async def test_profile_failure_rolls_back_identity_user(
    test_db, identity, identity_service, add_profile, monkeypatch,
):
    actor = await add_profile(role="admin")
    actor_id = actor.user_id
    taken = await add_profile(email="taken@example.com")
    taken_user_id = taken.user_id

    # identity hands back a user id that already has a profile -> unique violation on insert
    original_create = identity.create_user

    async def create_with_taken_id(email, password, email_confirm=True):
        user = await original_create(email, password, email_confirm)
        identity_service.users[taken_user_id] = identity_service.users.pop(user.id)
        return type(user)(id=taken_user_id, email=user.email)

    monkeypatch.setattr(identity, "create_user", create_with_taken_id)

    with pytest.raises(DatabaseError) as exc:
        await admin_users.create_user(test_db, identity, actor_id, _create_body())
    assert "Profile creation error" in exc.value.message

    assert ("DELETE", f"/auth/v1/admin/users/{taken_user_id}") in identity_service.calls
    assert taken_user_id not in identity_service.users
    created = await test_db.scalar(
        select(Profile.id).where(Profile.email == "new@example.com"),
    )
    assert created is None
    assert await _activities(test_db) == []


async def test_failed_compensation_keeps_original_error(
    test_db, identity, identity_service, add_profile, monkeypatch, caplog,
):
    actor = await add_profile(role="admin")
    actor_id = actor.user_id
    taken = await add_profile(email="taken@example.com")
    taken_user_id = taken.user_id
    identity_service.fail_delete_status = 400

    original_create = identity.create_user

    async def create_with_taken_id(email, password, email_confirm=True):
        user = await original_create(email, password, email_confirm)
        return type(user)(id=taken_user_id, email=user.email)

    monkeypatch.setattr(identity, "create_user", create_with_taken_id)

    with caplog.at_level("ERROR", logger="app.services.admin_users"):
        with pytest.raises(DatabaseError):
            await admin_users.create_user(test_db, identity, actor_id, _create_body())
    assert "orphaned identity user" in caplog.text


# -- updates / delete -----------------------------------------------------------

async def test_update_role_writes_activity_and_invalidates_cache(
    test_db, admin_profile, user_profile,
):
    actor_id, target_id, target_user = admin_profile.user_id, user_profile.id, user_profile.user_id
    await load_profile(test_db, target_user)
    assert auth_performance_stats()["cache_size"] == 1

    profile = await admin_users.update_user_role(test_db, actor_id, target_id, UserRole.ADMIN)
    assert profile.role == "admin"
    assert auth_performance_stats()["cache_size"] == 0

    [activity] = await _activities(test_db)
    assert activity.description == "Admin updated user role to admin"
    assert activity.details == {"target_user_id": str(target_id)}


async def test_update_unknown_profile_404(test_db, admin_profile):
    with pytest.raises(ResourceNotFoundError):
        await admin_users.update_user_role(
            test_db, admin_profile.user_id, uuid4(), UserRole.USER,
        )


async def test_update_profile_recomputes_full_name(test_db, admin_profile, user_profile):
    actor_id, target_id = admin_profile.user_id, user_profile.id
    profile = await admin_users.update_user_profile(
        test_db, actor_id, target_id, {"last_name": "Updated", "mobile_no": "+4479460000"},
    )
    assert profile.full_name == "Uma Updated"
    assert profile.first_name == "Uma"
    assert profile.mobile_no == "+4479460000"
    [activity] = await _activities(test_db)
    assert activity.description == "Admin updated user profile"


async def test_update_profile_without_name_keeps_full_name(test_db, admin_profile, user_profile):
    profile = await admin_users.update_user_profile(
        test_db, admin_profile.user_id, user_profile.id, {"date_of_birth": date(2000, 2, 29)},
    )
    assert profile.full_name == "Uma User"
    assert profile.date_of_birth == date(2000, 2, 29)


async def test_delete_user(test_db, identity_service, admin_profile, user_profile):
    actor_id, target_id = admin_profile.user_id, user_profile.id
    await admin_users.delete_user(test_db, actor_id, target_id)
    assert await test_db.get(Profile, target_id) is None
    [activity] = await _activities(test_db)
    assert activity.description == "Admin deleted user"
    assert activity.details == {"deleted_user_id": str(target_id)}
    # identity record untouched
    assert identity_service.calls == []


async def test_delete_unknown_404(test_db, admin_profile):
    with pytest.raises(ResourceNotFoundError):
        await admin_users.delete_user(test_db, admin_profile.user_id, uuid4())
