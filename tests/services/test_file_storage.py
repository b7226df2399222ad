"""Tests for image and resume storage."""
import hashlib
from collections.abc import Iterator
from io import BytesIO
from unittest.mock import patch
from uuid import UUID

import httpx
import pytest
import respx
from pypdf import PdfWriter

from core.config import Settings
from services.exceptions import (
    ResumeUnavailableError,
    StorageUnavailableError,
    UploadRejectedError,
)
from services.file_storage import (
    CLOUDINARY_API_BASE,
    IMAGE_TRANSFORMATION,
    fetch_resume,
    sign_params,
    upload_file,
    upload_image,
    upload_resume,
    validate_image,
    validate_resume,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
IMAGE_ENDPOINT = f"{CLOUDINARY_API_BASE}/demo-cloud/image/upload"
RAW_ENDPOINT = f"{CLOUDINARY_API_BASE}/demo-cloud/raw/upload"
OWNER_ID = UUID("0192f0a4-3c5e-7d21-8b6a-4f1e2d3c4b5a")


def make_pdf() -> bytes:
    """A one-page PDF."""
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def storage_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        cloudinary_cloud_name="demo-cloud",
        cloudinary_api_key="key-123",
        cloudinary_api_secret="secret-456",
        max_image_size=1024,
        max_resume_size=64 * 1024,
    )


# =============================================================================
# Validation
# =============================================================================


@pytest.mark.parametrize("content_type", ["image/jpeg", "image/png", "image/gif", "image/webp"])
def test__validate_image__accepts_supported_types(content_type: str) -> None:
    validate_image(content_type, PNG_BYTES, max_size=1024)


@pytest.mark.parametrize("content_type", ["image/svg+xml", "application/pdf", "text/html", None])
def test__validate_image__rejects_other_types(content_type: str | None) -> None:
    with pytest.raises(UploadRejectedError) as exc_info:
        validate_image(content_type, PNG_BYTES, max_size=1024)
    assert exc_info.value.field == "file"


def test__validate_image__rejects_oversize() -> None:
    with pytest.raises(UploadRejectedError, match="too large"):
        validate_image("image/png", b"x" * 2048, max_size=1024)


def test__validate_image__rejects_empty_file() -> None:
    with pytest.raises(UploadRejectedError, match="No file"):
        validate_image("image/png", b"", max_size=1024)


def test__validate_resume__accepts_pdf() -> None:
    validate_resume("application/pdf", make_pdf(), max_size=64 * 1024)


def test__validate_resume__rejects_non_pdf_type() -> None:
    with pytest.raises(UploadRejectedError, match="PDF"):
        validate_resume("application/msword", b"doc", max_size=1024)


def test__validate_resume__rejects_unreadable_pdf() -> None:
    with pytest.raises(UploadRejectedError, match="not a valid PDF"):
        validate_resume("application/pdf", b"this is not a pdf at all", max_size=1024)


# =============================================================================
# Signing
# =============================================================================


def test__sign_params__sorted_and_secret_appended() -> None:
    params = {"timestamp": "1700000000", "folder": "portfolios/1"}

    expected = hashlib.sha1(  # noqa: S324
        b"folder=portfolios/1&timestamp=1700000000secret",
    ).hexdigest()

    assert sign_params(params, "secret") == expected


def test__sign_params__skips_empty_values() -> None:
    assert sign_params({"folder": "a", "public_id": ""}, "s") == sign_params({"folder": "a"}, "s")


# =============================================================================
# Upload
# =============================================================================


@respx.mock
async def test__upload_image__posts_signed_request(storage_settings: Settings) -> None:
    route = respx.post(IMAGE_ENDPOINT).mock(
        return_value=httpx.Response(
            200,
            json={
                "secure_url": "https://res.cloudinary.com/demo-cloud/image/upload/v1/a.png",
                "public_id": f"portfolios/{OWNER_ID}/a",
            },
        ),
    )

    stored = await upload_image(storage_settings, OWNER_ID, PNG_BYTES, "a.png", "image/png")

    assert stored.url == "https://res.cloudinary.com/demo-cloud/image/upload/v1/a.png"
    assert stored.public_id == f"portfolios/{OWNER_ID}/a"
    assert route.called
    body = route.calls.last.request.content
    assert b'name="folder"' in body
    assert f"portfolios/{OWNER_ID}".encode() in body
    assert IMAGE_TRANSFORMATION.encode() in body
    assert b'name="signature"' in body
    assert b'name="api_key"' in body


@respx.mock
async def test__upload_resume__uses_raw_resource_type(storage_settings: Settings) -> None:
    route = respx.post(RAW_ENDPOINT).mock(
        return_value=httpx.Response(
            200,
            json={
                "secure_url": "https://res.cloudinary.com/demo-cloud/raw/upload/v1/resume.pdf",
                "public_id": f"portfolios/{OWNER_ID}/resume/resume_1",
            },
        ),
    )

    stored = await upload_resume(
        storage_settings, OWNER_ID, make_pdf(), "cv.pdf", "application/pdf",
    )

    assert stored.url.endswith("resume.pdf")
    assert route.called
    assert f"portfolios/{OWNER_ID}/resume".encode() in route.calls.last.request.content


async def test__upload_image__invalid_file_never_reaches_storage(
    storage_settings: Settings,
) -> None:
    with respx.mock(assert_all_called=False) as mock:
        route = mock.post(IMAGE_ENDPOINT)
        with pytest.raises(UploadRejectedError):
            await upload_image(storage_settings, OWNER_ID, PNG_BYTES, "a.svg", "image/svg+xml")
    assert not route.called


async def test__upload_file__unconfigured_storage() -> None:
    settings = Settings(database_url="sqlite+aiosqlite://")

    with pytest.raises(StorageUnavailableError) as exc_info:
        await upload_file(settings, b"x", "x.png", "image/png", "f", "image")
    assert exc_info.value.status_code == 502


@respx.mock
async def test__upload_file__provider_error(storage_settings: Settings) -> None:
    respx.post(IMAGE_ENDPOINT).mock(return_value=httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(StorageUnavailableError):
        await upload_image(storage_settings, OWNER_ID, PNG_BYTES, "a.png", "image/png")


@respx.mock
async def test__upload_file__malformed_provider_response(storage_settings: Settings) -> None:
    respx.post(IMAGE_ENDPOINT).mock(return_value=httpx.Response(200, json={"unexpected": True}))

    with pytest.raises(StorageUnavailableError):
        await upload_image(storage_settings, OWNER_ID, PNG_BYTES, "a.png", "image/png")


@respx.mock
async def test__upload_file__network_error(storage_settings: Settings) -> None:
    respx.post(IMAGE_ENDPOINT).mock(side_effect=httpx.ConnectError("unreachable"))

    with pytest.raises(StorageUnavailableError):
        await upload_image(storage_settings, OWNER_ID, PNG_BYTES, "a.png", "image/png")


# =============================================================================
# Resume download
# =============================================================================


RESUME_URL = "https://res.cloudinary.com/demo-cloud/raw/upload/v1/resume.pdf"


@pytest.fixture
def allow_storage_host() -> Iterator[None]:
    """Skip the DNS-based private network check so the mocked CDN host is fetched."""
    with patch("services.file_storage.validate_url_not_private"):
        yield


@respx.mock
async def test__fetch_resume__returns_body(allow_storage_host: None) -> None:  # noqa: ARG001
    pdf = make_pdf()
    respx.get(RESUME_URL).mock(return_value=httpx.Response(200, content=pdf))

    assert await fetch_resume(RESUME_URL, max_size=64 * 1024) == pdf


@respx.mock
async def test__fetch_resume__oversize_body_rejected(allow_storage_host: None) -> None:  # noqa: ARG001
    respx.get(RESUME_URL).mock(return_value=httpx.Response(200, content=b"x" * 2048))

    with pytest.raises(ResumeUnavailableError):
        await fetch_resume(RESUME_URL, max_size=1024)


@respx.mock
async def test__fetch_resume__redirect_not_followed(allow_storage_host: None) -> None:  # noqa: ARG001
    respx.get(RESUME_URL).mock(
        return_value=httpx.Response(302, headers={"location": "http://10.0.0.5/internal.pdf"}),
    )

    with pytest.raises(ResumeUnavailableError) as exc_info:
        await fetch_resume(RESUME_URL, max_size=1024)
    assert exc_info.value.status_code == 502


@respx.mock
async def test__fetch_resume__network_error(allow_storage_host: None) -> None:  # noqa: ARG001
    respx.get(RESUME_URL).mock(side_effect=httpx.ConnectError("unreachable"))

    with pytest.raises(ResumeUnavailableError):
        await fetch_resume(RESUME_URL, max_size=1024)


@pytest.mark.parametrize(
    "url",
    ["http://127.0.0.1/resume.pdf", "http://localhost/resume.pdf", "file:///etc/passwd"],
)
async def test__fetch_resume__blocked_urls_never_fetched(url: str) -> None:
    with respx.mock(assert_all_called=False) as mock:
        route = mock.route()
        with pytest.raises(ResumeUnavailableError):
            await fetch_resume(url, max_size=1024)
    assert not route.called
