"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import health, portfolio, previews, public, uploads, users, webhooks
from core.config import get_settings
from services.exceptions import PortfolioServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()
    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if app_settings.dev_mode:
        logger.warning("DEV_MODE is enabled: authentication is bypassed")
    if not app_settings.storage_configured:
        logger.warning("Cloudinary is not configured: uploads will fail")

    yield


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


def error_response(
    status_code: int,
    error: str,
    field: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the structured error body shared by every failure."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "field": field},
        headers=headers,
    )


app_settings = get_settings()

app = FastAPI(
    title="Portfolio API",
    description="Multi-tenant portfolio builder with public pages at /p/{slug}.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(PortfolioServiceError)
async def portfolio_service_exception_handler(
    _request: Request, exc: PortfolioServiceError,
) -> JSONResponse:
    """Map domain errors to their HTTP status with a client-safe message."""
    return error_response(exc.status_code, exc.message, exc.field)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Report the first validation failure with its dotted field path."""
    errors = exc.errors()
    if not errors:
        return error_response(422, "Invalid request")
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = str(first.get("msg", "Invalid value")).removeprefix("Value error, ")
    return error_response(422, message, ".".join(location) or None)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    """Reshape HTTPException (auth failures, unknown routes) into the error body."""
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError,
) -> JSONResponse:
    """Hide database failures behind a generic message."""
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "Something went wrong. Please try again.")


# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(portfolio.router)
app.include_router(uploads.router)
app.include_router(previews.router)
app.include_router(webhooks.router)
app.include_router(public.router)
