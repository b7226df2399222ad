"""Liveness and dependency status."""
import logging
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_settings
from core.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

ConfigState = Literal["configured", "not_configured"]


class HealthResponse(BaseModel):
    """
    Service status.

    Only the database decides between healthy and degraded. Storage and webhook
    configuration are reported so a misconfigured deployment is visible, but the
    public pages keep working without them.
    """

    status: Literal["healthy", "degraded"]
    database: Literal["healthy", "unhealthy"]
    storage: ConfigState
    webhooks: ConfigState


def _config_state(present: bool) -> ConfigState:
    return "configured" if present else "not_configured"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Report database reachability and which integrations are configured."""
    try:
        await db.execute(text("SELECT 1"))
        database = "healthy"
    except Exception:
        logger.exception("Database health check failed")
        database = "unhealthy"

    return HealthResponse(
        status="healthy" if database == "healthy" else "degraded",
        database=database,
        storage=_config_state(settings.storage_configured),
        webhooks=_config_state(bool(settings.webhook_secret)),
    )
