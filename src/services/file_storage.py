"""
Object storage for portfolio images and resumes (Cloudinary upload API), plus
resume downloads for public visitors.

Uploads are signed requests: SHA-1 over the alphabetically sorted
"key=value" parameters joined with "&", followed by the API secret.
"""
import hashlib
import logging
import time
from dataclasses import dataclass
from io import BytesIO
from uuid import UUID

import httpx
from pypdf import PdfReader

from core.config import Settings
from services.exceptions import (
    ResumeUnavailableError,
    StorageUnavailableError,
    UploadRejectedError,
)
from services.link_preview import SSRFBlockedError, validate_url_not_private

logger = logging.getLogger(__name__)

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"
UPLOAD_TIMEOUT = 30.0
DOWNLOAD_TIMEOUT = 10.0

IMAGE_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
PDF_CONTENT_TYPE = "application/pdf"

# Cap width at 1200px and let the CDN pick quality and format
IMAGE_TRANSFORMATION = "c_limit,w_1200/q_auto:low/f_auto"


@dataclass
class StoredFile:
    """Location of an uploaded file."""

    url: str
    public_id: str


def _format_size(size: int) -> str:
    return f"{size // (1024 * 1024)}MB"


def validate_image(content_type: str | None, data: bytes, max_size: int) -> None:
    """
    Check an image upload's type and size.

    Raises:
        UploadRejectedError: If the type is not an accepted image type or the file is too large.
    """
    if content_type not in IMAGE_CONTENT_TYPES:
        raise UploadRejectedError(
            "Invalid file type. Please upload a JPEG, PNG, GIF or WebP image.",
        )
    if not data:
        raise UploadRejectedError("No file provided")
    if len(data) > max_size:
        raise UploadRejectedError(f"File too large. Maximum size is {_format_size(max_size)}.")


def validate_resume(content_type: str | None, data: bytes, max_size: int) -> None:
    """
    Check a resume upload's type and size, and that it parses as a PDF.

    Raises:
        UploadRejectedError: If the file is not a PDF, is too large, or cannot be read.
    """
    if content_type != PDF_CONTENT_TYPE:
        raise UploadRejectedError("Invalid file type. Please upload a PDF file.")
    if not data:
        raise UploadRejectedError("No file provided")
    if len(data) > max_size:
        raise UploadRejectedError(f"File too large. Maximum size is {_format_size(max_size)}.")

    try:
        reader = PdfReader(BytesIO(data))
        page_count = len(reader.pages)
    except Exception as e:
        logger.info("Rejected resume upload that is not a readable PDF: %s", e)
        raise UploadRejectedError("The file is not a valid PDF.") from e
    if page_count == 0:
        raise UploadRejectedError("The file is not a valid PDF.")


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Compute the Cloudinary signature for upload parameters."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key])
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()  # noqa: S324


async def upload_file(
    settings: Settings,
    data: bytes,
    filename: str,
    content_type: str,
    folder: str,
    resource_type: str,
    extra_params: dict[str, str] | None = None,
) -> StoredFile:
    """
    Upload bytes to Cloudinary.

    Args:
        settings: Application settings with Cloudinary credentials.
        data: File content.
        filename: Original filename, passed through for the multipart part.
        content_type: MIME type of the content.
        folder: Destination folder.
        resource_type: "image" or "raw".
        extra_params: Additional signed upload parameters.

    Returns:
        StoredFile with the secure URL and public id.

    Raises:
        StorageUnavailableError: If storage is not configured or the upload fails.
    """
    if not settings.storage_configured:
        logger.error("Upload attempted but Cloudinary credentials are not configured")
        raise StorageUnavailableError()

    params = {"folder": folder, "timestamp": str(int(time.time()))}
    params.update(extra_params or {})
    form = {
        **params,
        "api_key": settings.cloudinary_api_key,
        "signature": sign_params(params, settings.cloudinary_api_secret),
    }
    endpoint = f"{CLOUDINARY_API_BASE}/{settings.cloudinary_cloud_name}/{resource_type}/upload"

    try:
        async with httpx.AsyncClient(timeout=UPLOAD_TIMEOUT) as client:
            response = await client.post(
                endpoint,
                data=form,
                files={"file": (filename, data, content_type)},
            )
            response.raise_for_status()
            body = response.json()
        return StoredFile(url=body["secure_url"], public_id=body["public_id"])
    except (httpx.HTTPError, ValueError, KeyError) as e:
        logger.warning("Cloudinary upload to %s failed: %s", folder, e, exc_info=True)
        raise StorageUnavailableError() from e


async def upload_image(
    settings: Settings,
    user_id: UUID,
    data: bytes,
    filename: str,
    content_type: str | None,
) -> StoredFile:
    """Validate and store an avatar, cover, project or certification image."""
    validate_image(content_type, data, settings.max_image_size)
    stored = await upload_file(
        settings,
        data,
        filename,
        content_type,
        folder=f"portfolios/{user_id}",
        resource_type="image",
        extra_params={"transformation": IMAGE_TRANSFORMATION},
    )
    logger.info("Stored image %s for user %s", stored.public_id, user_id)
    return stored


async def upload_resume(
    settings: Settings,
    user_id: UUID,
    data: bytes,
    filename: str,
    content_type: str | None,
) -> StoredFile:
    """Validate and store a resume PDF."""
    validate_resume(content_type, data, settings.max_resume_size)
    stored = await upload_file(
        settings,
        data,
        filename,
        content_type,
        folder=f"portfolios/{user_id}/resume",
        resource_type="raw",
        extra_params={"public_id": f"resume_{int(time.time() * 1000)}", "overwrite": "true"},
    )
    logger.info("Stored resume %s for user %s", stored.public_id, user_id)
    return stored


async def fetch_resume(url: str, max_size: int) -> bytes:
    """
    Download a stored resume so it can be served as an attachment.

    Only a portfolio's own resume_url is ever passed here, but owners can set that
    URL freely, so it gets the same private-network check as link previews.
    Redirects are not followed and the body is capped at max_size.

    Raises:
        ResumeUnavailableError: If the URL is blocked, the fetch fails, or the
            file is larger than max_size.
    """
    try:
        validate_url_not_private(url)
    except (SSRFBlockedError, ValueError) as e:
        logger.warning("Resume download blocked for %s: %s", url, e)
        raise ResumeUnavailableError() from e

    chunks: list[bytes] = []
    received = 0
    try:
        async with (
            httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT) as client,
            client.stream("GET", url, headers={"Accept": PDF_CONTENT_TYPE}) as response,
        ):
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                received += len(chunk)
                if received > max_size:
                    logger.warning("Resume at %s exceeds %s", url, _format_size(max_size))
                    raise ResumeUnavailableError()
                chunks.append(chunk)
    except httpx.HTTPError as e:
        logger.warning("Resume download from %s failed: %s", url, e)
        raise ResumeUnavailableError() from e
    return b"".join(chunks)
