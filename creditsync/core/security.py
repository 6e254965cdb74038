import base64
import hashlib
import hmac
import time

from creditsync.core.exceptions import InvalidWebhookError

SVIX_SECRET_PREFIX = "whsec_"


def _svix_key(secret: str) -> bytes:
    if secret.startswith(SVIX_SECRET_PREFIX):
        secret = secret[len(SVIX_SECRET_PREFIX):]
    try:
        return base64.b64decode(secret)
    except ValueError as e:
        raise InvalidWebhookError(f"Malformed webhook secret: {e}") from e


def sign_svix_payload(payload: bytes, msg_id: str, timestamp: str, secret: str) -> str:
    """Return the `v1,<base64>` signature Svix sends for this message."""
    signed = f"{msg_id}.{timestamp}.".encode("utf-8") + payload
    digest = hmac.new(_svix_key(secret), signed, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode("ascii")


def verify_svix_webhook(
    payload: bytes,
    msg_id: str | None,
    timestamp: str | None,
    signature_header: str | None,
    secret: str,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> None:
    """Raise InvalidWebhookError unless one of the header's v1 signatures matches and the timestamp is fresh."""
    if not secret:
        raise InvalidWebhookError("Webhook secret not configured")
    if not msg_id or not timestamp or not signature_header:
        raise InvalidWebhookError("Missing webhook signature headers")
    try:
        sent_at = int(timestamp)
    except ValueError as e:
        raise InvalidWebhookError("Invalid webhook timestamp") from e
    now = time.time() if now is None else now
    if abs(now - sent_at) > tolerance_seconds:
        raise InvalidWebhookError("Webhook timestamp outside tolerance")

    expected = sign_svix_payload(payload, msg_id, timestamp, secret)
    for candidate in signature_header.split():
        version, _, _ = candidate.partition(",")
        if version != "v1":
            continue
        if hmac.compare_digest(expected, candidate):
            return
    raise InvalidWebhookError()
