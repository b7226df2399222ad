"""Tests for user endpoints."""
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User
from services.user_service import Identity
from tests.api.conftest import ALICE, acting_as


async def test_get_me_in_dev_mode_returns_dev_user(client: AsyncClient) -> None:
    """Test that /users/me returns dev user when DEV_MODE=true."""
    response = await client.get("/users/me")
    assert response.status_code == 200

    data = response.json()
    assert data["external_id"] == "dev|local-development-user"
    assert data["email"] == "dev@localhost"
    assert data["display_name"] == "Dev User"


async def test_get_me_creates_user_on_first_request(
    client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    """Test that user is created in database on first authenticated request."""
    response = await client.get("/users/me")
    assert response.status_code == 200

    result = await db_session.execute(
        select(User).where(User.external_id == "dev|local-development-user"),
    )
    user = result.scalar_one()
    assert str(user.id) == response.json()["id"]


async def test_get_me_returns_same_user_on_repeat_requests(client: AsyncClient) -> None:
    first = await client.get("/users/me")
    second = await client.get("/users/me")

    assert first.json()["id"] == second.json()["id"]


async def test_get_me_syncs_profile_from_identity(client: AsyncClient) -> None:
    with acting_as(ALICE):
        await client.get("/users/me")

    renamed = Identity(
        external_id=ALICE.external_id,
        email="alice@new.example.com",
        display_name="Alice Cooper",
        avatar_url="https://img.example.com/alice.png",
    )
    with acting_as(renamed):
        response = await client.get("/users/me")

    data = response.json()
    assert data["email"] == "alice@new.example.com"
    assert data["display_name"] == "Alice Cooper"
    assert data["avatar_url"] == "https://img.example.com/alice.png"
