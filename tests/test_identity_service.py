import pytest

from creditsync.core.exceptions import InvalidWebhookError
from creditsync.services.identity import apply_identity_event, parse_clerk_event, profile_from_clerk


def clerk_user(user_id="user_2xyz", email="grace@example.com", **extra):
    data = {
        "id": user_id,
        "email_addresses": [{"id": "idn_1", "email_address": email}],
        "first_name": "Grace",
        "last_name": "Hopper",
        "image_url": "https://img.clerk.com/grace.png",
    }
    data.update(extra)
    return data


def test_profile_from_clerk_maps_fields():
    profile = profile_from_clerk(clerk_user())
    assert profile.external_id == "user_2xyz"
    assert profile.email == "grace@example.com"
    assert profile.first_name == "Grace"
    assert profile.last_name == "Hopper"
    assert profile.photo_url == "https://img.clerk.com/grace.png"


def test_profile_prefers_primary_email():
    data = clerk_user(
        email_addresses=[
            {"id": "idn_1", "email_address": "old@example.com"},
            {"id": "idn_2", "email_address": "primary@example.com"},
        ],
        primary_email_address_id="idn_2",
    )
    assert profile_from_clerk(data).email == "primary@example.com"


def test_profile_tolerates_null_names():
    profile = profile_from_clerk({"id": "user_1", "email_addresses": [], "first_name": None})
    assert profile.email == ""
    assert profile.first_name == ""


def test_parse_clerk_event_types():
    assert parse_clerk_event({"type": "user.created", "data": {"id": "u"}}) == ("created", {"id": "u"})
    assert parse_clerk_event({"type": "user.deleted", "data": {"id": "u"}})[0] == "deleted"
    assert parse_clerk_event({"type": "session.created", "data": {}})[0] is None


async def test_created_inserts_user_with_zero_balance(directory):
    result = await apply_identity_event(directory, "created", clerk_user())
    assert result.applied is True
    user = await directory.get("user_2xyz")
    assert user.credit_balance == 0
    assert user.email == "grace@example.com"


async def test_duplicate_created_is_acknowledged(directory):
    await apply_identity_event(directory, "created", clerk_user())
    await directory.increment_credits("user_2xyz", 100)
    result = await apply_identity_event(directory, "created", clerk_user(email="other@example.com"))
    assert result.applied is False
    assert result.message == "User already exists"
    user = await directory.get("user_2xyz")
    assert user.email == "grace@example.com"
    assert user.credit_balance == 100


async def test_updated_changes_profile_only(directory):
    await apply_identity_event(directory, "created", clerk_user())
    await directory.increment_credits("user_2xyz", 500)
    result = await apply_identity_event(directory, "updated", clerk_user(email="new@example.com", last_name="Murray"))
    assert result.applied is True
    user = await directory.get("user_2xyz")
    assert user.email == "new@example.com"
    assert user.last_name == "Murray"
    assert user.credit_balance == 500


async def test_updated_missing_user_is_noop(directory):
    result = await apply_identity_event(directory, "updated", clerk_user())
    assert result.applied is False
    assert result.message == "User not found"
    assert await directory.get("user_2xyz") is None


async def test_deleted_removes_user(directory):
    await apply_identity_event(directory, "created", clerk_user())
    result = await apply_identity_event(directory, "deleted", {"id": "user_2xyz", "deleted": True})
    assert result.applied is True
    assert await directory.get("user_2xyz") is None


async def test_deleted_missing_user_is_noop(directory):
    result = await apply_identity_event(directory, "deleted", {"id": "user_gone", "deleted": True})
    assert result.applied is False


async def test_unknown_event_is_ignored(directory):
    result = await apply_identity_event(directory, None, clerk_user())
    assert result.event_type == "ignored"
    assert await directory.get("user_2xyz") is None


def test_parse_clerk_event_rejects_non_object_data():
    with pytest.raises(InvalidWebhookError):
        parse_clerk_event({"type": "user.created", "data": [{"id": "user_1"}]})
