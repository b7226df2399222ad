"""Owner endpoints for creating, editing and exporting the caller's portfolio."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.user import User
from schemas.portfolio import (
    CertificationsUpdate,
    ExperienceUpdate,
    HiddenItems,
    ImageUpdate,
    PortfolioCreate,
    PortfolioExport,
    PortfolioResponse,
    ProfileUpdate,
    ProjectsUpdate,
    PublishUpdate,
    ResumeUpdate,
    SectionVisibility,
    SkillsUpdate,
    SlugAvailabilityResponse,
    SlugUpdate,
    SocialLinks,
    ThemeConfig,
)
from services import portfolio_service, slug_service

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("/me", response_model=PortfolioResponse)
async def get_my_portfolio(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Get the caller's portfolio with raw, unfiltered content."""
    portfolio = await portfolio_service.get_owned_portfolio(db, current_user.id)
    return PortfolioResponse.from_model(portfolio)


@router.post("/", response_model=PortfolioResponse, status_code=201)
async def create_portfolio(
    data: PortfolioCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Create the caller's portfolio. Each user has at most one."""
    portfolio = await portfolio_service.create_portfolio(db, current_user.id, data)
    return PortfolioResponse.from_model(portfolio)


@router.delete("/me", status_code=204)
async def delete_my_portfolio(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Permanently delete the caller's portfolio. The account is kept."""
    await portfolio_service.delete_portfolio(db, current_user.id)


@router.get("/slug-availability", response_model=SlugAvailabilityResponse)
async def check_slug_availability(
    slug: str = Query(..., max_length=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SlugAvailabilityResponse:
    """
    Advisory check for live feedback while choosing a slug.

    The result is not a reservation; the write that stores the slug re-checks.
    """
    return await slug_service.check_slug_availability(db, slug, current_user.id)


@router.get("/me/export", response_model=PortfolioExport)
async def export_my_portfolio(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioExport:
    """Export the caller's portfolio, including hidden sections and items."""
    return await portfolio_service.export_portfolio(db, current_user.id)


@router.put("/me/profile", response_model=PortfolioResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace profile fields. Creates the portfolio if the caller has none."""
    portfolio = await portfolio_service.update_profile(db, current_user.id, data)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/slug", response_model=PortfolioResponse)
async def change_slug(
    data: SlugUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Rename the public URL."""
    portfolio = await portfolio_service.change_slug(db, current_user.id, data.slug)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/experience", response_model=PortfolioResponse)
async def update_experience(
    data: ExperienceUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace the whole experience list."""
    portfolio = await portfolio_service.update_experience(db, current_user.id, data.experience)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/projects", response_model=PortfolioResponse)
async def update_projects(
    data: ProjectsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace the whole projects list."""
    portfolio = await portfolio_service.update_projects(db, current_user.id, data.projects)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/certifications", response_model=PortfolioResponse)
async def update_certifications(
    data: CertificationsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace the whole certifications list."""
    portfolio = await portfolio_service.update_certifications(
        db, current_user.id, data.certifications,
    )
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/skills", response_model=PortfolioResponse)
async def update_skills(
    data: SkillsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace the skills list."""
    portfolio = await portfolio_service.update_skills(db, current_user.id, data.skills)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/social-links", response_model=PortfolioResponse)
async def update_social_links(
    data: SocialLinks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace the social links."""
    portfolio = await portfolio_service.update_social_links(db, current_user.id, data)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/avatar", response_model=PortfolioResponse)
async def update_avatar(
    data: ImageUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Set or clear the avatar URL (typically from POST /uploads/image)."""
    portfolio = await portfolio_service.update_avatar(db, current_user.id, data.url)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/cover-image", response_model=PortfolioResponse)
async def update_cover_image(
    data: ImageUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Set or clear the cover image URL."""
    portfolio = await portfolio_service.update_cover_image(db, current_user.id, data.url)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/resume", response_model=PortfolioResponse)
async def update_resume(
    data: ResumeUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Set or clear the resume URL (typically from POST /uploads/resume)."""
    portfolio = await portfolio_service.update_resume(db, current_user.id, data.resume_url)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/theme", response_model=PortfolioResponse)
async def update_theme(
    data: ThemeConfig,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace the theme."""
    portfolio = await portfolio_service.update_theme(db, current_user.id, data)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/visibility", response_model=PortfolioResponse)
async def update_section_visibility(
    data: SectionVisibility,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace the whole-section visibility toggles."""
    portfolio = await portfolio_service.update_section_visibility(db, current_user.id, data)
    return PortfolioResponse.from_model(portfolio)


@router.put("/me/hidden-items", response_model=PortfolioResponse)
async def update_hidden_items(
    data: HiddenItems,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Replace the individually hidden items."""
    portfolio = await portfolio_service.update_hidden_items(db, current_user.id, data)
    return PortfolioResponse.from_model(portfolio)


@router.post("/me/hidden-items/prune", response_model=PortfolioResponse)
async def prune_hidden_items(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Remove hidden-item entries that no longer match any item."""
    portfolio = await portfolio_service.prune_stale_hidden_items(db, current_user.id)
    return PortfolioResponse.from_model(portfolio)


@router.post("/me/publish", response_model=PortfolioResponse)
async def set_published(
    data: PublishUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Publish or unpublish the portfolio."""
    portfolio = await portfolio_service.set_published(db, current_user.id, data.is_published)
    return PortfolioResponse.from_model(portfolio)


@router.post("/me/toggle-publish", response_model=PortfolioResponse)
async def toggle_publish(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PortfolioResponse:
    """Flip the publish state."""
    portfolio = await portfolio_service.toggle_publish(db, current_user.id)
    return PortfolioResponse.from_model(portfolio)
