"""File upload endpoints backed by object storage."""
from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from api.dependencies import get_current_user, get_settings
from core.config import Settings
from models.user import User
from services import file_storage

router = APIRouter(prefix="/uploads", tags=["uploads"])


class UploadResponse(BaseModel):
    """Location of a stored file."""

    url: str
    public_id: str

    model_config = {"from_attributes": True}


async def _read_limited(file: UploadFile, max_size: int) -> bytes:
    """Read at most one byte past the limit, so oversized uploads are detected without buffering them whole."""
    return await file.read(max_size + 1)


@router.post("/image", response_model=UploadResponse, status_code=201)
async def upload_image(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    """
    Upload an avatar, cover, project or certification image.

    Accepts JPEG, PNG, GIF and WebP up to MAX_IMAGE_SIZE. Store the returned URL
    with the matching portfolio update endpoint.
    """
    data = await _read_limited(file, settings.max_image_size)
    stored = await file_storage.upload_image(
        settings,
        current_user.id,
        data,
        file.filename or "image",
        file.content_type,
    )
    return UploadResponse.model_validate(stored)


@router.post("/resume", response_model=UploadResponse, status_code=201)
async def upload_resume(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    """Upload a resume. PDF only, up to MAX_RESUME_SIZE."""
    data = await _read_limited(file, settings.max_resume_size)
    stored = await file_storage.upload_resume(
        settings,
        current_user.id,
        data,
        file.filename or "resume.pdf",
        file.content_type,
    )
    return UploadResponse.model_validate(stored)
