import orjson
from fastapi import APIRouter, Depends, Header, Request

from creditsync.core.config import Settings, get_settings
from creditsync.core.exceptions import InvalidWebhookError
from creditsync.core.security import verify_svix_webhook
from creditsync.deps import get_directory
from creditsync.services import identity as identity_service
from creditsync.stores.base import UserDirectory

router = APIRouter()


@router.post("/webhook")
async def identity_webhook(
    request: Request,
    svix_id: str | None = Header(None, alias="svix-id"),
    svix_timestamp: str | None = Header(None, alias="svix-timestamp"),
    svix_signature: str | None = Header(None, alias="svix-signature"),
    directory: UserDirectory = Depends(get_directory),
    settings: Settings = Depends(get_settings),
):
    """Clerk user.created / user.updated / user.deleted, verified against the Svix signature."""
    body = await request.body()
    verify_svix_webhook(
        body,
        svix_id,
        svix_timestamp,
        svix_signature,
        settings.clerk_webhook_secret,
        tolerance_seconds=settings.identity_webhook_tolerance_seconds,
    )
    try:
        event = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise InvalidWebhookError("Webhook body is not valid JSON") from e
    if not isinstance(event, dict):
        raise InvalidWebhookError("Webhook body must be an object")
    event_type, data = identity_service.parse_clerk_event(event)
    result = await identity_service.apply_identity_event(directory, event_type, data)
    return {"success": True, "message": result.message}
