"""
Slug allocation for public portfolio URLs.

Slugs are globally unique and stored lowercase. Two kinds of checks exist:

- Advisory (check_slug_availability): a read used for live feedback while the
  user types. It is racy by nature and never gates a write.
- Authoritative (reserve_slug + the unique index on portfolios.slug): run inside
  the write itself. The re-check catches the common case with a clean error; the
  unique index decides true races, where the losing flush raises IntegrityError
  and the caller reports SlugTakenError.
"""
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.portfolio import Portfolio
from schemas.portfolio import SlugAvailabilityResponse
from schemas.validators import validate_slug
from services.exceptions import InvalidSlugError, SlugTakenError

logger = logging.getLogger(__name__)


def normalize_slug(raw: str) -> str:
    """
    Lowercase and validate a candidate slug.

    Idempotent: normalizing an already-normalized slug returns it unchanged.

    Raises:
        InvalidSlugError: If the result does not match ^[a-z0-9-]{3,30}$.
    """
    try:
        return validate_slug(raw)
    except ValueError as e:
        raise InvalidSlugError(str(e)) from e


async def get_slug_owner(db: AsyncSession, slug: str) -> UUID | None:
    """Return the user id holding a slug, or None if it is free."""
    result = await db.execute(
        select(Portfolio.user_id).where(Portfolio.slug == slug),
    )
    return result.scalar_one_or_none()


async def is_slug_available(
    db: AsyncSession,
    slug: str,
    excluding_user_id: UUID | None = None,
) -> bool:
    """
    Check whether a slug can be assigned.

    A slug is available if no portfolio holds it, or if the holder is
    excluding_user_id (renaming to one's own current slug).
    """
    owner = await get_slug_owner(db, slug)
    return owner is None or owner == excluding_user_id


async def check_slug_availability(
    db: AsyncSession,
    raw: str,
    user_id: UUID,
) -> SlugAvailabilityResponse:
    """
    Advisory availability check for live UI feedback.

    Never raises for malformed input; reports invalid_format instead.
    """
    try:
        slug = normalize_slug(raw)
    except InvalidSlugError:
        return SlugAvailabilityResponse(
            slug=raw.strip().lower(),
            available=False,
            reason="invalid_format",
        )

    available = await is_slug_available(db, slug, excluding_user_id=user_id)
    return SlugAvailabilityResponse(
        slug=slug,
        available=available,
        reason="available" if available else "taken",
    )


async def reserve_slug(db: AsyncSession, slug: str, user_id: UUID) -> None:
    """
    Write-time availability check, called immediately before the flush that stores the slug.

    Raises:
        SlugTakenError: If another user's portfolio holds the slug.
    """
    if not await is_slug_available(db, slug, excluding_user_id=user_id):
        logger.info("Slug '%s' rejected for user %s: already taken", slug, user_id)
        raise SlugTakenError(slug)
