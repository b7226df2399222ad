"""Tests for the health check endpoint."""
from unittest.mock import patch

from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from api.main import app
from core.config import Settings, get_settings


async def test_health_endpoint_returns_healthy_status(client: AsyncClient) -> None:
    """The health endpoint reports a reachable database."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"


async def test_health_endpoint_reports_integration_config(
    client: AsyncClient,
    database_url: str,
) -> None:
    settings = Settings(
        database_url=database_url,
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
        webhook_secret="",
    )
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        response = await client.get("/health")
    finally:
        app.dependency_overrides.pop(get_settings, None)

    assert response.json() == {
        "status": "healthy",
        "database": "healthy",
        "storage": "configured",
        "webhooks": "not_configured",
    }


async def test_health_endpoint_sets_security_headers(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert "max-age" in response.headers["strict-transport-security"]


async def test_health_endpoint_degraded_when_database_fails(client: AsyncClient) -> None:
    """A failing database check still answers, with degraded status."""
    with patch(
        "sqlalchemy.ext.asyncio.AsyncSession.execute",
        side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")),
    ):
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "unhealthy"


async def test_unknown_route_uses_error_body(client: AsyncClient) -> None:
    response = await client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found", "field": None}
