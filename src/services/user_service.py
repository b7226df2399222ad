"""Service layer for the local mirror of identity-provider users."""
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "User"


@dataclass(frozen=True)
class Identity:
    """An authenticated principal as reported by the identity provider."""

    external_id: str
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None


def build_display_name(*parts: str | None) -> str:
    """Join non-empty name parts, falling back to a generic name."""
    name = " ".join(part.strip() for part in parts if part and part.strip())
    return name or DEFAULT_DISPLAY_NAME


async def get_user_by_external_id(db: AsyncSession, external_id: str) -> User | None:
    """Look up a user by the provider's subject id."""
    result = await db.execute(select(User).where(User.external_id == external_id))
    return result.scalar_one_or_none()


async def _release_email(db: AsyncSession, email: str, owner_id: UUID | None = None) -> None:
    """
    Clear an email address from any other user still holding it.

    The provider allows one account per address at a time, so another local row
    with the same email is stale (e.g. after a missed user.deleted webhook). The
    latest claim wins and the stale row keeps everything but its email.
    """
    query = select(User).where(User.email == email)
    if owner_id is not None:
        query = query.where(User.id != owner_id)
    stale_users = (await db.execute(query)).scalars().all()
    for stale in stale_users:
        logger.warning(
            "Email of identity %s was claimed by another identity; clearing it",
            stale.external_id,
        )
        stale.email = None
    if stale_users:
        await db.flush()


async def _sync_profile(db: AsyncSession, user: User, identity: Identity) -> bool:
    """Copy provider-owned fields onto the user. Returns True if anything changed."""
    changed = False
    if identity.email and user.email != identity.email:
        await _release_email(db, identity.email, user.id)
        user.email = identity.email
        changed = True
    if identity.display_name and user.display_name != identity.display_name:
        user.display_name = identity.display_name
        changed = True
    if identity.avatar_url and user.avatar_url != identity.avatar_url:
        user.avatar_url = identity.avatar_url
        changed = True
    return changed


async def get_or_create_user(db: AsyncSession, identity: Identity) -> User:
    """
    Get existing user or create new one from provider claims.

    Handles race conditions where multiple concurrent requests (or a request and
    the user.created webhook) try to create the same user simultaneously. If an
    IntegrityError occurs on the unique external_id, the function rolls back and
    fetches the existing user.

    Note: Uses flush(), not commit. Session generator handles commit at request end.

    Important: This function runs during authentication before any other database
    operations in the request. The rollback on IntegrityError is safe because no
    prior work exists to be undone.
    """
    user = await get_user_by_external_id(db, identity.external_id)

    if user is None:
        if identity.email:
            await _release_email(db, identity.email)
        user = User(
            external_id=identity.external_id,
            email=identity.email,
            display_name=identity.display_name or DEFAULT_DISPLAY_NAME,
            avatar_url=identity.avatar_url,
        )
        db.add(user)
        try:
            await db.flush()
            logger.info("Created user for identity %s", identity.external_id)
            return user
        except IntegrityError:
            # Another request created the user between our SELECT and INSERT.
            await db.rollback()
            user = await get_user_by_external_id(db, identity.external_id)
            if user is None:
                raise

    if await _sync_profile(db, user, identity):
        await db.flush()

    return user


async def delete_user(db: AsyncSession, external_id: str) -> bool:
    """
    Delete a user and, through the cascade, their portfolio.

    Returns:
        True if a user was deleted, False if none existed.
    """
    user = await get_user_by_external_id(db, external_id)
    if user is None:
        return False
    await db.delete(user)
    await db.flush()
    logger.info("Deleted user for identity %s", external_id)
    return True
