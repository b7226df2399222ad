"""Link preview endpoint used when adding project links."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from api.dependencies import get_current_user, get_settings
from core.config import Settings
from models.user import User
from schemas.validators import validate_optional_url
from services.link_preview import fetch_link_preview

router = APIRouter(prefix="/previews", tags=["previews"])


class LinkPreviewRequest(BaseModel):
    """URL to preview."""

    url: str

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        """Require an http(s) URL."""
        url = validate_optional_url(v)
        if url is None:
            raise ValueError("URL is required")
        return url


class LinkPreviewResponse(BaseModel):
    """Preview fields. All are null and error is set when the page could not be read."""

    url: str
    image: str | None
    favicon: str | None
    title: str | None
    description: str | None
    error: str | None

    model_config = {"from_attributes": True}


@router.post("", response_model=LinkPreviewResponse)
async def create_link_preview(
    data: LinkPreviewRequest,
    _current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> LinkPreviewResponse:
    """
    Fetch a page and extract its preview image, favicon, title and description.

    Best-effort: an unreachable or slow page yields an empty preview with error set,
    never a failed request.
    """
    preview = await fetch_link_preview(data.url, timeout=settings.link_preview_timeout)
    return LinkPreviewResponse.model_validate(preview)
