"""Shared exceptions for service layer operations."""


class PortfolioServiceError(Exception):
    """
    Base exception for portfolio service errors.

    Carries a message that is safe to return to clients and an optional field
    path for form-level error display.
    """

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class PortfolioNotFoundError(PortfolioServiceError):
    """
    Raised when the caller has no portfolio, or a public slug is absent or unpublished.

    The message is identical in both cases so that an unpublished portfolio cannot
    be told apart from a missing one.
    """

    status_code = 404

    def __init__(self) -> None:
        super().__init__("Portfolio not found")


class PortfolioAlreadyExistsError(PortfolioServiceError):
    """Raised when creating a portfolio for a user who already has one."""

    status_code = 409

    def __init__(self) -> None:
        super().__init__("You already have a portfolio. Please update it instead.")


class SlugTakenError(PortfolioServiceError):
    """Raised when a slug is held by another user's portfolio at write time."""

    status_code = 409

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__("This username is already taken", field="slug")


class InvalidSlugError(PortfolioServiceError, ValueError):
    """Raised when a slug does not match the allowed format."""

    status_code = 422

    def __init__(self, message: str) -> None:
        super().__init__(message, field="slug")


class UploadRejectedError(PortfolioServiceError):
    """Raised when an upload has the wrong type or exceeds the size limit."""

    status_code = 400

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason, field="file")


class StorageUnavailableError(PortfolioServiceError):
    """Raised when the object store cannot be reached or refuses an upload."""

    status_code = 502

    def __init__(self) -> None:
        super().__init__("Failed to upload file")


class WebhookVerificationError(PortfolioServiceError):
    """Raised when a webhook delivery is missing headers or fails signature checks."""

    status_code = 400

    def __init__(self, message: str = "Error verifying webhook") -> None:
        super().__init__(message)


class ResumeNotFoundError(PortfolioServiceError):
    """Raised when a published portfolio has no resume to download."""

    status_code = 404

    def __init__(self) -> None:
        super().__init__("Resume not found")


class ResumeUnavailableError(PortfolioServiceError):
    """Raised when a stored resume cannot be fetched for download."""

    status_code = 502

    def __init__(self) -> None:
        super().__init__("Failed to fetch resume")
