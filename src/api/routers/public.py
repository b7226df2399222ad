"""Public, unauthenticated portfolio pages."""
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.dependencies import get_async_session, get_session_factory, get_settings
from core.config import Settings
from core.http_cache import check_not_modified, last_modified_headers
from schemas.portfolio import PublicPortfolioResponse
from services import file_storage, portfolio_service
from services.exceptions import ResumeNotFoundError

router = APIRouter(prefix="/p", tags=["public"])

RESUME_DOWNLOAD_HEADERS = {
    "Content-Disposition": 'attachment; filename="resume.pdf"',
    "Cache-Control": "public, max-age=3600",
}


@router.get(
    "/{slug}",
    response_model=PublicPortfolioResponse,
    responses={304: {"description": "Not modified since If-Modified-Since"}},
)
async def get_public_portfolio(
    slug: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> Response:
    """
    Render a published portfolio with hidden sections and items removed.

    Unpublished and unknown slugs both return 404. Each full render counts one
    view; the count is updated after the response is sent and a failure there
    does not affect the response. A 304 revalidation does not count as a view.
    """
    portfolio = await portfolio_service.get_public_portfolio(db, slug)

    not_modified = check_not_modified(request, portfolio.updated_at)
    if not_modified is not None:
        return not_modified

    view = portfolio_service.build_public_view(portfolio)
    background_tasks.add_task(portfolio_service.increment_views, session_factory, portfolio.slug)
    return JSONResponse(
        content=view.model_dump(mode="json"),
        headers=last_modified_headers(portfolio.updated_at),
    )


@router.get(
    "/{slug}/resume",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_resume(
    slug: str,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Download the portfolio's resume as an attachment named resume.pdf.

    Only the stored resume_url is fetched. Returns 404 for unpublished portfolios
    and portfolios without a resume, and 502 if the file cannot be fetched.
    """
    portfolio = await portfolio_service.get_public_portfolio(db, slug)
    if not portfolio.resume_url:
        raise ResumeNotFoundError()

    data = await file_storage.fetch_resume(portfolio.resume_url, settings.max_resume_size)
    return Response(
        content=data,
        media_type=file_storage.PDF_CONTENT_TYPE,
        headers=RESUME_DOWNLOAD_HEADERS,
    )
