"""Identity provider (Clerk) events -> User Directory."""

from typing import Any

from pydantic import BaseModel

from creditsync.core.exceptions import DuplicateUserError, InvalidWebhookError, UserNotFoundError
from creditsync.core.logging import get_logger
from creditsync.models.user import IdentityProfile
from creditsync.stores.base import UserDirectory

log = get_logger(__name__)

EVENT_TYPES = {
    "user.created": "created",
    "user.updated": "updated",
    "user.deleted": "deleted",
}


class IdentitySyncResult(BaseModel):
    event_type: str
    external_id: str | None = None
    applied: bool
    message: str


def _primary_email(data: dict[str, Any]) -> str:
    addresses = data.get("email_addresses") or []
    primary_id = data.get("primary_email_address_id")
    for address in addresses:
        if primary_id and address.get("id") == primary_id:
            return address.get("email_address") or ""
    if addresses:
        return addresses[0].get("email_address") or ""
    return ""


def profile_from_clerk(data: dict[str, Any]) -> IdentityProfile:
    """Map a Clerk user object onto the fields we keep."""
    return IdentityProfile(
        external_id=data["id"],
        email=_primary_email(data),
        first_name=data.get("first_name") or "",
        last_name=data.get("last_name") or "",
        photo_url=data.get("image_url") or "",
    )


def parse_clerk_event(body: dict[str, Any]) -> tuple[str | None, dict[str, Any]]:
    """Return (created|updated|deleted or None for ignored types, data)."""
    data = body.get("data") or {}
    if not isinstance(data, dict):
        raise InvalidWebhookError("Webhook data must be an object")
    return EVENT_TYPES.get(body.get("type") or ""), data


async def apply_identity_event(
    directory: UserDirectory,
    event_type: str | None,
    payload: dict[str, Any],
) -> IdentitySyncResult:
    """
    Apply one verified identity event.
    Duplicate creates, updates for unknown users, and deletes of absent users are acknowledged
    as success so the provider does not redeliver them.
    """
    external_id = payload.get("id")
    if event_type is None:
        log.info("identity_event_ignored", external_id=external_id)
        return IdentitySyncResult(event_type="ignored", external_id=external_id, applied=False, message="Ignored")
    if not external_id:
        log.warning("identity_event_missing_id", event_type=event_type)
        return IdentitySyncResult(event_type=event_type, applied=False, message="Missing user id")

    if event_type == "created":
        try:
            await directory.create(profile_from_clerk(payload))
        except DuplicateUserError:
            log.info("identity_user_exists", external_id=external_id)
            return IdentitySyncResult(event_type=event_type, external_id=external_id, applied=False, message="User already exists")
        log.info("identity_user_created", external_id=external_id)
        return IdentitySyncResult(event_type=event_type, external_id=external_id, applied=True, message="User created")

    if event_type == "updated":
        try:
            await directory.update_profile(profile_from_clerk(payload))
        except UserNotFoundError:
            log.warning("identity_user_not_found", external_id=external_id)
            return IdentitySyncResult(event_type=event_type, external_id=external_id, applied=False, message="User not found")
        log.info("identity_user_updated", external_id=external_id)
        return IdentitySyncResult(event_type=event_type, external_id=external_id, applied=True, message="User updated")

    removed = await directory.delete(external_id)
    log.info("identity_user_deleted", external_id=external_id, removed=removed)
    return IdentitySyncResult(
        event_type=event_type,
        external_id=external_id,
        applied=removed,
        message="User deleted" if removed else "User not found",
    )
