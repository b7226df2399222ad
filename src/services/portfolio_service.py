"""
Service layer for portfolio CRUD and per-section updates.

Every mutator follows the same shape: load the caller's own portfolio, replace one
section wholesale with the validated payload, flush, and signal that the public
page must be refreshed. Sections are separate columns, so concurrent mutators on
different sections do not overwrite each other. Concurrent mutators on the same
section are last-write-wins.
"""
import asyncio
import logging
from collections.abc import Collection, Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload
from uuid6 import uuid7

from models.portfolio import Portfolio
from schemas.portfolio import (
    Certification,
    ExportedPortfolio,
    Experience,
    HiddenItems,
    PortfolioContent,
    PortfolioCreate,
    PortfolioExport,
    ProfileUpdate,
    Project,
    PublicPortfolioResponse,
    Section,
    SectionItem,
    SectionVisibility,
    SocialLinks,
    ThemeConfig,
)
from services import slug_service
from services.exceptions import PortfolioAlreadyExistsError, PortfolioNotFoundError, SlugTakenError
from services.visibility import filter_public_content, prune_hidden_items

logger = logging.getLogger(__name__)

# Upper bound on the background view increment
VIEW_INCREMENT_TIMEOUT = 5.0


# =============================================================================
# Helpers
# =============================================================================


def assign_item_ids(
    items: Sequence[SectionItem],
    hidden_index_keys: Collection[str] = frozenset(),
) -> tuple[list[dict], dict[str, str]]:
    """
    Serialize a replacement list, minting ids for items that arrive without one.

    Existing ids are kept so hidden-item entries keep pointing at the same item.
    A repeated id within the list is treated as a new item and re-minted.

    Args:
        items: The replacement list.
        hidden_index_keys: Index keys ("0", "1", ...) currently hiding id-less items.

    Returns:
        The serialized items, and a map from each hidden index key to the id minted
        for the id-less item at that position.
    """
    serialized = []
    seen: set[str] = set()
    moved: dict[str, str] = {}
    for index, item in enumerate(items):
        item_id = item.id if item.id and item.id not in seen else str(uuid7())
        if not item.id and str(index) in hidden_index_keys:
            moved[str(index)] = item_id
        seen.add(item_id)
        serialized.append(item.model_copy(update={"id": item_id}).model_dump(mode="json"))
    return serialized, moved


def _hidden_index_keys(stored_items: Sequence[dict], hidden_keys: Sequence[str]) -> set[str]:
    """Hidden index keys that match an id-less stored item."""
    index_keys = {str(index) for index, item in enumerate(stored_items) if not item.get("id")}
    return index_keys.intersection(hidden_keys)


def _signal_refresh(*slugs: str) -> None:
    """
    Mark public pages as stale.

    Writes bump updated_at, which the public endpoint serves as Last-Modified,
    so cached pages revalidate on the next request.
    """
    for slug in dict.fromkeys(slugs):
        logger.info("Portfolio '%s' changed; public page needs refresh", slug)


def _prune_sections(portfolio: Portfolio, *sections: Section) -> None:
    """Drop hidden-item entries made stale by replacing the given sections."""
    hidden = HiddenItems.model_validate(portfolio.hidden_items or {})
    pruned = prune_hidden_items(PortfolioContent.from_model(portfolio), hidden, sections)
    if pruned != hidden:
        portfolio.hidden_items = pruned.model_dump()


async def _flush_write(
    db: AsyncSession,
    portfolio: Portfolio,
    user_id: UUID,
    slug: str,
    creating: bool = False,
) -> Portfolio:
    """
    Flush a portfolio write and refresh server-generated columns.

    The unique indexes on slug and user_id are the final arbiter for races that
    slipped past the pre-checks. On IntegrityError the whole write is rolled back
    and reported as the matching domain error.

    Note: Uses flush(), not commit. Session generator handles commit at request end.
    """
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        owner = await slug_service.get_slug_owner(db, slug)
        if owner is not None and owner != user_id:
            logger.info("Slug '%s' lost a concurrent write for user %s", slug, user_id)
            raise SlugTakenError(slug) from e
        if creating and await get_portfolio_for_user(db, user_id) is not None:
            raise PortfolioAlreadyExistsError() from e
        raise
    await db.refresh(portfolio)
    return portfolio


# =============================================================================
# Repository
# =============================================================================


async def get_portfolio_for_user(db: AsyncSession, user_id: UUID) -> Portfolio | None:
    """Get the user's portfolio, or None if they have not created one."""
    result = await db.execute(select(Portfolio).where(Portfolio.user_id == user_id))
    return result.scalar_one_or_none()


async def get_owned_portfolio(db: AsyncSession, user_id: UUID) -> Portfolio:
    """
    Get the user's portfolio.

    Raises:
        PortfolioNotFoundError: If the user has no portfolio.
    """
    portfolio = await get_portfolio_for_user(db, user_id)
    if portfolio is None:
        raise PortfolioNotFoundError()
    return portfolio


async def create_portfolio(
    db: AsyncSession,
    user_id: UUID,
    data: PortfolioCreate,
) -> Portfolio:
    """
    Create the user's portfolio.

    Args:
        db: Database session.
        user_id: Owner of the new portfolio.
        data: Validated creation payload (slug already normalized).

    Returns:
        The created portfolio.

    Raises:
        PortfolioAlreadyExistsError: If the user already has a portfolio.
        SlugTakenError: If another portfolio holds the slug.
    """
    if await get_portfolio_for_user(db, user_id) is not None:
        raise PortfolioAlreadyExistsError()

    await slug_service.reserve_slug(db, data.slug, user_id)

    portfolio = Portfolio(
        user_id=user_id,
        slug=data.slug,
        display_name=data.display_name,
        headline=data.headline,
        bio=data.bio,
        experience=[],
        projects=[],
        certifications=[],
        skills=data.skills,
        social_links=data.social_links.model_dump(),
        theme_config=data.theme_config.model_dump(),
        section_visibility=SectionVisibility().model_dump(),
        hidden_items=HiddenItems().model_dump(),
        is_published=data.is_published,
        views=0,
    )
    db.add(portfolio)
    await _flush_write(db, portfolio, user_id, data.slug, creating=True)
    logger.info("Created portfolio '%s' for user %s", portfolio.slug, user_id)
    _signal_refresh(portfolio.slug)
    return portfolio


async def delete_portfolio(db: AsyncSession, user_id: UUID) -> None:
    """
    Hard-delete the user's portfolio. The user record is left in place.

    Raises:
        PortfolioNotFoundError: If the user has no portfolio.
    """
    portfolio = await get_owned_portfolio(db, user_id)
    slug = portfolio.slug
    await db.delete(portfolio)
    await db.flush()
    logger.info("Deleted portfolio '%s' for user %s", slug, user_id)
    _signal_refresh(slug)


async def get_public_portfolio(db: AsyncSession, slug: str) -> Portfolio:
    """
    Get a published portfolio by slug (case-insensitive).

    Unpublished, missing, and malformed slugs all raise the same error so that
    the existence of an unpublished portfolio is not observable.

    Raises:
        PortfolioNotFoundError: If no published portfolio holds the slug.
    """
    result = await db.execute(
        select(Portfolio)
        .options(joinedload(Portfolio.user))
        .where(
            Portfolio.slug == slug.strip().lower(),
            Portfolio.is_published.is_(True),
        ),
    )
    portfolio = result.scalar_one_or_none()
    if portfolio is None:
        raise PortfolioNotFoundError()
    return portfolio


def build_public_view(portfolio: Portfolio) -> PublicPortfolioResponse:
    """Apply visibility rules and shape the public response."""
    content = filter_public_content(
        PortfolioContent.from_model(portfolio),
        SectionVisibility.model_validate(portfolio.section_visibility or {}),
        HiddenItems.model_validate(portfolio.hidden_items or {}),
    )
    display_name = content.display_name or portfolio.user.display_name or portfolio.slug
    return PublicPortfolioResponse(
        slug=portfolio.slug,
        display_name=display_name,
        content=content,
        theme_config=ThemeConfig.model_validate(portfolio.theme_config or {}),
        views=portfolio.views,
        updated_at=portfolio.updated_at,
    )


async def increment_views(session_factory: async_sessionmaker, slug: str) -> None:
    """
    Count one public page render (fire-and-forget).

    Runs in its own session after the response is sent. Any failure, including
    a timeout, is logged and swallowed so it never affects the render.
    updated_at is pinned so a view does not invalidate cached pages.
    """
    try:
        async with asyncio.timeout(VIEW_INCREMENT_TIMEOUT), session_factory() as session:
            await session.execute(
                update(Portfolio)
                .where(Portfolio.slug == slug, Portfolio.is_published.is_(True))
                .values(views=Portfolio.views + 1, updated_at=Portfolio.updated_at),
            )
            await session.commit()
    except Exception:
        logger.warning("Failed to increment views for '%s'", slug, exc_info=True)


async def export_portfolio(db: AsyncSession, user_id: UUID) -> PortfolioExport:
    """
    Export the owner's portfolio. Visibility rules are not applied.

    Raises:
        PortfolioNotFoundError: If the user has no portfolio.
    """
    portfolio = await get_owned_portfolio(db, user_id)
    return PortfolioExport(
        exported_at=datetime.now(UTC),
        portfolio=ExportedPortfolio(
            slug=portfolio.slug,
            content=PortfolioContent.from_model(portfolio),
            theme_config=ThemeConfig.model_validate(portfolio.theme_config or {}),
            section_visibility=SectionVisibility.model_validate(
                portfolio.section_visibility or {},
            ),
            hidden_items=HiddenItems.model_validate(portfolio.hidden_items or {}),
            is_published=portfolio.is_published,
        ),
    )


# =============================================================================
# Content mutators
# =============================================================================


async def update_profile(
    db: AsyncSession,
    user_id: UUID,
    data: ProfileUpdate,
) -> Portfolio:
    """
    Replace the profile fields, creating the portfolio on first use.

    Raises:
        SlugTakenError: If the requested slug belongs to another user.
    """
    portfolio = await get_portfolio_for_user(db, user_id)
    if portfolio is None:
        return await create_portfolio(
            db,
            user_id,
            PortfolioCreate(
                slug=data.slug,
                display_name=data.display_name,
                headline=data.headline,
                bio=data.bio,
                skills=data.skills,
                social_links=data.social_links,
            ),
        )

    old_slug = portfolio.slug
    if data.slug != old_slug:
        await slug_service.reserve_slug(db, data.slug, user_id)

    portfolio.slug = data.slug
    portfolio.display_name = data.display_name
    portfolio.headline = data.headline
    portfolio.bio = data.bio
    portfolio.skills = data.skills
    portfolio.social_links = data.social_links.model_dump()
    _prune_sections(portfolio, Section.SKILLS, Section.SOCIAL_LINKS)
    await _flush_write(db, portfolio, user_id, data.slug)
    _signal_refresh(old_slug, portfolio.slug)
    return portfolio


async def change_slug(db: AsyncSession, user_id: UUID, slug: str) -> Portfolio:
    """
    Rename the portfolio's public URL. Renaming to the current slug is a no-op.

    Raises:
        PortfolioNotFoundError: If the user has no portfolio.
        SlugTakenError: If the slug belongs to another user.
    """
    portfolio = await get_owned_portfolio(db, user_id)
    old_slug = portfolio.slug
    if slug == old_slug:
        return portfolio
    await slug_service.reserve_slug(db, slug, user_id)
    portfolio.slug = slug
    await _flush_write(db, portfolio, user_id, slug)
    logger.info("Renamed portfolio '%s' to '%s'", old_slug, slug)
    _signal_refresh(old_slug, slug)
    return portfolio


async def _replace_items(
    db: AsyncSession,
    user_id: UUID,
    section: Section,
    items: Sequence[SectionItem],
) -> Portfolio:
    """
    Replace an id-keyed list.

    Items saved before ids existed are hidden by list index. Once they are given
    ids, their hidden entries are moved to the new ids so they stay hidden.
    """
    portfolio = await get_owned_portfolio(db, user_id)
    hidden = HiddenItems.model_validate(portfolio.hidden_items or {})
    hidden_keys = hidden.for_section(section)
    serialized, moved = assign_item_ids(
        items,
        _hidden_index_keys(getattr(portfolio, section.value) or [], hidden_keys),
    )
    setattr(portfolio, section.value, serialized)
    if moved:
        logger.info("Moved %d hidden %s entries to new item ids", len(moved), section.value)
        portfolio.hidden_items = hidden.model_copy(
            update={section.value: [moved.get(key, key) for key in hidden_keys]},
        ).model_dump()
    _prune_sections(portfolio, section)
    await _flush_write(db, portfolio, user_id, portfolio.slug)
    _signal_refresh(portfolio.slug)
    return portfolio


async def update_experience(
    db: AsyncSession,
    user_id: UUID,
    experience: Sequence[Experience],
) -> Portfolio:
    """Replace the experience list."""
    return await _replace_items(db, user_id, Section.EXPERIENCE, experience)


async def update_projects(
    db: AsyncSession,
    user_id: UUID,
    projects: Sequence[Project],
) -> Portfolio:
    """Replace the projects list."""
    return await _replace_items(db, user_id, Section.PROJECTS, projects)


async def update_certifications(
    db: AsyncSession,
    user_id: UUID,
    certifications: Sequence[Certification],
) -> Portfolio:
    """Replace the certifications list."""
    return await _replace_items(db, user_id, Section.CERTIFICATIONS, certifications)


async def _replace_fields(db: AsyncSession, user_id: UUID, **values: object) -> Portfolio:
    portfolio = await get_owned_portfolio(db, user_id)
    for name, value in values.items():
        setattr(portfolio, name, value)
    await _flush_write(db, portfolio, user_id, portfolio.slug)
    _signal_refresh(portfolio.slug)
    return portfolio


async def update_skills(db: AsyncSession, user_id: UUID, skills: list[str]) -> Portfolio:
    """Replace the skills list."""
    portfolio = await get_owned_portfolio(db, user_id)
    portfolio.skills = skills
    _prune_sections(portfolio, Section.SKILLS)
    await _flush_write(db, portfolio, user_id, portfolio.slug)
    _signal_refresh(portfolio.slug)
    return portfolio


async def update_social_links(
    db: AsyncSession,
    user_id: UUID,
    social_links: SocialLinks,
) -> Portfolio:
    """Replace the social links."""
    portfolio = await get_owned_portfolio(db, user_id)
    portfolio.social_links = social_links.model_dump()
    _prune_sections(portfolio, Section.SOCIAL_LINKS)
    await _flush_write(db, portfolio, user_id, portfolio.slug)
    _signal_refresh(portfolio.slug)
    return portfolio


async def update_avatar(db: AsyncSession, user_id: UUID, avatar_url: str | None) -> Portfolio:
    """Set or clear the avatar image URL."""
    return await _replace_fields(db, user_id, avatar_url=avatar_url)


async def update_cover_image(
    db: AsyncSession,
    user_id: UUID,
    cover_image_url: str | None,
) -> Portfolio:
    """Set or clear the cover image URL."""
    return await _replace_fields(db, user_id, cover_image_url=cover_image_url)


async def update_resume(db: AsyncSession, user_id: UUID, resume_url: str | None) -> Portfolio:
    """Set or clear the resume URL."""
    return await _replace_fields(db, user_id, resume_url=resume_url)


async def update_theme(db: AsyncSession, user_id: UUID, theme: ThemeConfig) -> Portfolio:
    """Replace the theme configuration."""
    return await _replace_fields(db, user_id, theme_config=theme.model_dump())


async def update_section_visibility(
    db: AsyncSession,
    user_id: UUID,
    visibility: SectionVisibility,
) -> Portfolio:
    """Replace the whole-section visibility toggles."""
    return await _replace_fields(db, user_id, section_visibility=visibility.model_dump())


async def update_hidden_items(
    db: AsyncSession,
    user_id: UUID,
    hidden_items: HiddenItems,
) -> Portfolio:
    """
    Replace the hidden-item lists.

    Entries are stored as given. Entries that match nothing have no effect on
    the public page.
    """
    return await _replace_fields(db, user_id, hidden_items=hidden_items.model_dump())


async def prune_stale_hidden_items(db: AsyncSession, user_id: UUID) -> Portfolio:
    """Remove hidden-item entries that no longer match any item, in every section."""
    portfolio = await get_owned_portfolio(db, user_id)
    _prune_sections(portfolio, *Section)
    await _flush_write(db, portfolio, user_id, portfolio.slug)
    _signal_refresh(portfolio.slug)
    return portfolio


async def set_published(db: AsyncSession, user_id: UUID, is_published: bool) -> Portfolio:
    """Publish or unpublish the portfolio."""
    return await _replace_fields(db, user_id, is_published=is_published)


async def toggle_publish(db: AsyncSession, user_id: UUID) -> Portfolio:
    """Flip the publish state."""
    portfolio = await get_owned_portfolio(db, user_id)
    return await set_published(db, user_id, not portfolio.is_published)
