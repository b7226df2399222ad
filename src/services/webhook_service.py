"""
Identity-provider lifecycle webhooks.

Deliveries are signed Svix-style: the signature header carries one or more
space-separated "v1,<base64 hmac>" entries, each an HMAC-SHA256 over
"{svix-id}.{svix-timestamp}.{raw body}" keyed with the base64 secret that
follows the "whsec_" prefix.
"""
import base64
import hashlib
import hmac
import json
import logging
import time
from collections.abc import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from services import user_service
from services.exceptions import WebhookVerificationError
from services.user_service import Identity

logger = logging.getLogger(__name__)

SECRET_PREFIX = "whsec_"
TIMESTAMP_TOLERANCE_SECONDS = 5 * 60


def _decode_secret(secret: str) -> bytes:
    if secret.startswith(SECRET_PREFIX):
        secret = secret[len(SECRET_PREFIX):]
    try:
        return base64.b64decode(secret)
    except ValueError as e:
        raise WebhookVerificationError("Webhook secret is not valid base64") from e


def sign_payload(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    """Compute the base64 signature for a delivery."""
    signed = f"{msg_id}.{timestamp}.".encode() + body
    digest = hmac.new(_decode_secret(secret), signed, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_webhook(
    secret: str,
    headers: Mapping[str, str],
    body: bytes,
    now: float | None = None,
) -> dict:
    """
    Verify a delivery and return its decoded JSON payload.

    Args:
        secret: Signing secret ("whsec_..." format).
        headers: Request headers (case-insensitive mapping).
        body: Raw request body, exactly as received.
        now: Current unix time, for tests.

    Raises:
        WebhookVerificationError: On missing headers, a stale or future timestamp,
            a bad signature, or a body that is not a JSON object.
    """
    if not secret:
        logger.error("Webhook received but WEBHOOK_SECRET is not configured")
        raise WebhookVerificationError()

    msg_id = headers.get("svix-id")
    timestamp = headers.get("svix-timestamp")
    signature_header = headers.get("svix-signature")
    if not msg_id or not timestamp or not signature_header:
        raise WebhookVerificationError("Missing svix headers")

    try:
        sent_at = int(timestamp)
    except ValueError as e:
        raise WebhookVerificationError("Invalid webhook timestamp") from e

    current = time.time() if now is None else now
    if abs(current - sent_at) > TIMESTAMP_TOLERANCE_SECONDS:
        raise WebhookVerificationError("Webhook timestamp outside tolerance")

    expected = sign_payload(secret, msg_id, timestamp, body)
    candidates = [
        entry.partition(",")[2]
        for entry in signature_header.split()
        if entry.startswith("v1,")
    ]
    if not any(hmac.compare_digest(expected, candidate) for candidate in candidates):
        logger.warning("Webhook %s failed signature verification", msg_id)
        raise WebhookVerificationError()

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise WebhookVerificationError("Webhook body is not valid JSON") from e
    if not isinstance(payload, dict):
        raise WebhookVerificationError("Webhook body is not valid JSON")
    return payload


def _primary_email(data: dict) -> str | None:
    addresses = data.get("email_addresses") or []
    primary_id = data.get("primary_email_address_id")
    for address in addresses:
        if primary_id and address.get("id") == primary_id:
            return address.get("email_address")
    if addresses:
        return addresses[0].get("email_address")
    return None


def identity_from_event(data: dict) -> Identity:
    """Map a user.created / user.updated event body to an Identity."""
    return Identity(
        external_id=data["id"],
        email=_primary_email(data),
        display_name=user_service.build_display_name(
            data.get("first_name"),
            data.get("last_name"),
        ),
        avatar_url=data.get("image_url"),
    )


async def handle_identity_event(db: AsyncSession, event: dict) -> str:
    """
    Apply a verified lifecycle event to the local user mirror.

    Returns:
        A short acknowledgement message.

    Raises:
        WebhookVerificationError: If a user event carries no user id.
    """
    event_type = event.get("type")
    data = event.get("data") or {}

    if event_type in ("user.created", "user.updated"):
        if not data.get("id"):
            raise WebhookVerificationError("Webhook event is missing the user id")
        await user_service.get_or_create_user(db, identity_from_event(data))
        logger.info("Applied %s for identity %s", event_type, data["id"])
        return "User created" if event_type == "user.created" else "User updated"

    if event_type == "user.deleted":
        if not data.get("id"):
            raise WebhookVerificationError("Webhook event is missing the user id")
        await user_service.delete_user(db, data["id"])
        return "User deleted"

    logger.debug("Ignoring webhook event type %s", event_type)
    return "Webhook received"
