"""Application configuration using pydantic-settings."""
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Identity provider - JWTs are verified against the provider's JWKS
    auth_issuer: str = Field(default="", validation_alias="AUTH_ISSUER")
    auth_audience: str = Field(default="", validation_alias="AUTH_AUDIENCE")
    auth_jwks_url_override: str = Field(default="", validation_alias="AUTH_JWKS_URL")

    # Signing secret for identity lifecycle webhooks ("whsec_..." format)
    webhook_secret: str = Field(default="", validation_alias="WEBHOOK_SECRET")

    # Development mode - bypasses auth for local development
    dev_mode: bool = Field(default=False, validation_alias="DEV_MODE")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    # Object storage (Cloudinary)
    cloudinary_cloud_name: str = Field(default="", validation_alias="CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: str = Field(default="", validation_alias="CLOUDINARY_API_KEY")
    cloudinary_api_secret: str = Field(default="", validation_alias="CLOUDINARY_API_SECRET")

    # Upload limits in bytes
    max_image_size: int = Field(default=5 * 1024 * 1024, validation_alias="MAX_IMAGE_SIZE")
    max_resume_size: int = Field(default=10 * 1024 * 1024, validation_alias="MAX_RESUME_SIZE")

    # Outbound link preview fetches
    link_preview_timeout: float = Field(default=10.0, validation_alias="LINK_PREVIEW_TIMEOUT")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def validate_dev_mode_security(self) -> "Settings":
        """
        Prevent DEV_MODE from being enabled with a production database.

        DEV_MODE completely bypasses authentication, so we must ensure it's only
        used with local development databases to prevent accidental production exposure.
        """
        if not self.dev_mode:
            return self

        try:
            parsed = urlparse(self.database_url)
            scheme = parsed.scheme or ""
            hostname = parsed.hostname or ""
        except Exception:
            # If we can't parse the URL, block DEV_MODE (fail-safe)
            scheme = ""
            hostname = ""

        # SQLite files are always local
        if scheme.startswith("sqlite"):
            return self

        local_hosts = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}
        if hostname.lower() not in local_hosts:
            raise ValueError(
                f"DEV_MODE cannot be enabled with a non-local database. "
                f"Database host '{hostname}' appears to be a production database. "
                f"DEV_MODE bypasses all authentication and must only be used locally.",
            )

        return self

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def auth_jwks_url(self) -> str:
        """Get the JWKS URL for fetching the identity provider's public keys."""
        if self.auth_jwks_url_override:
            return self.auth_jwks_url_override
        return f"{self.auth_issuer.rstrip('/')}/.well-known/jwks.json"

    @property
    def storage_configured(self) -> bool:
        """Whether object storage credentials are present."""
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
