"""Authentication module for identity-provider JWT validation."""
import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.session import get_async_session
from models.user import User
from services.user_service import Identity, build_display_name, get_or_create_user

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

# Cache for JWKS client (reuse across requests)
_jwks_clients: dict[str, PyJWKClient] = {}

DEV_IDENTITY = Identity(
    external_id="dev|local-development-user",
    email="dev@localhost",
    display_name="Dev User",
)


def get_jwks_client(settings: Settings) -> PyJWKClient:
    """Get or create a cached JWKS client for the given settings."""
    if settings.auth_jwks_url not in _jwks_clients:
        _jwks_clients[settings.auth_jwks_url] = PyJWKClient(
            settings.auth_jwks_url,
            cache_jwk_set=True,
            lifespan=3600,  # Cache keys for 1 hour
        )
    return _jwks_clients[settings.auth_jwks_url]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# Claim failures with a specific client-facing message; anything else is "Invalid token"
_CLAIM_ERRORS: tuple[tuple[type[jwt.PyJWTError], str], ...] = (
    (jwt.ExpiredSignatureError, "Token has expired"),
    (jwt.InvalidAudienceError, "Invalid audience"),
    (jwt.InvalidIssuerError, "Invalid issuer"),
)


def decode_jwt(token: str, settings: Settings) -> dict:
    """
    Decode and validate an RS256 JWT issued by the identity provider.

    The audience is only enforced when AUTH_AUDIENCE is configured.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or has the wrong
            audience or issuer; 503 if the signing keys cannot be fetched.
    """
    try:
        signing_key = get_jwks_client(settings).get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=settings.auth_audience or None,
            issuer=settings.auth_issuer,
            options={"verify_aud": bool(settings.auth_audience)},
        )
    except jwt.PyJWKClientConnectionError as e:
        logger.error("Failed to fetch JWKS from identity provider: %s", e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not validate credentials",
        ) from e
    except jwt.PyJWTError as e:
        for error_type, detail in _CLAIM_ERRORS:
            if isinstance(e, error_type):
                raise _unauthorized(detail) from e
        # Full details stay server-side
        logger.warning("JWT validation failed: %s", e, exc_info=True)
        raise _unauthorized("Invalid token") from e


def identity_from_claims(payload: dict) -> Identity:
    """
    Build an Identity from verified JWT claims.

    Raises:
        HTTPException: If the subject claim is missing.
    """
    external_id = payload.get("sub")
    if not external_id:
        raise _unauthorized("Invalid token: missing sub claim")

    name = payload.get("name")
    if not name and (payload.get("given_name") or payload.get("family_name")):
        name = build_display_name(payload.get("given_name"), payload.get("family_name"))

    return Identity(
        external_id=external_id,
        email=payload.get("email"),
        display_name=name or None,
        avatar_url=payload.get("picture") or payload.get("image_url"),
    )


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> Identity:
    """
    Dependency that validates the bearer token and returns the caller's identity.

    In DEV_MODE, bypasses auth and returns a fixed development identity.
    """
    if settings.dev_mode:
        return DEV_IDENTITY

    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = decode_jwt(credentials.credentials, settings)
    return identity_from_claims(payload)


async def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """Dependency that resolves the caller to a local user, creating it on first sight."""
    return await get_or_create_user(db, identity)
