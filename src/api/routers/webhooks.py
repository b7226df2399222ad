"""Identity-provider lifecycle webhooks."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_settings
from core.config import Settings
from services import webhook_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


class WebhookAck(BaseModel):
    """Acknowledgement returned to the webhook sender."""

    message: str


@router.post("/identity", response_model=WebhookAck)
async def identity_webhook(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> WebhookAck:
    """
    Keep local users in sync with the identity provider.

    Handles user.created, user.updated and user.deleted. Other event types are
    acknowledged and ignored.
    """
    if not settings.webhook_secret:
        logger.error("Webhook received but WEBHOOK_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhooks are not configured",
        )

    body = await request.body()
    event = webhook_service.verify_webhook(settings.webhook_secret, request.headers, body)
    message = await webhook_service.handle_identity_event(db, event)
    return WebhookAck(message=message)
