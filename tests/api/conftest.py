"""Shared fixtures and helpers for API tests."""
from collections.abc import Iterator
from contextlib import contextmanager

from httpx import AsyncClient

from api.main import app
from core.auth import get_current_identity
from services.user_service import Identity


@contextmanager
def acting_as(identity: Identity) -> Iterator[None]:
    """
    Authenticate subsequent requests as the given identity.

    Only the identity dependency is replaced; the session override installed by
    the client fixture stays in place.
    """
    app.dependency_overrides[get_current_identity] = lambda: identity
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_current_identity, None)


ALICE = Identity(external_id="user_alice", email="alice@example.com", display_name="Alice Smith")
BOB = Identity(external_id="user_bob", email="bob@example.com", display_name="Bob Jones")


async def create_portfolio(
    client: AsyncClient,
    slug: str = "jane-doe",
    **fields: object,
) -> dict:
    """Create a portfolio for the current identity and return the response body."""
    response = await client.post("/portfolio/", json={"slug": slug, **fields})
    assert response.status_code == 201, response.text
    return response.json()


SAMPLE_PROJECTS = [
    {
        "title": "Weather App",
        "description": "Forecasts from three public APIs.",
        "technologies": ["Python", "FastAPI"],
        "live_url": "https://weather.example.com",
    },
    {
        "title": "Chess Engine",
        "description": "Bitboard move generation and alpha-beta search.",
        "technologies": ["Rust"],
        "github_url": "https://github.com/example/chess",
    },
    {
        "title": "Recipe Box",
        "description": "Shared family recipes with tagging.",
        "technologies": ["TypeScript", "React"],
    },
]
