"""
Shared validation functions for Pydantic schemas.

This module contains validators used across the portfolio section schemas.
Section-specific rules remain in their respective schema classes.
"""
import re
from urllib.parse import urlparse

# Slug format: lowercase alphanumeric and hyphens, 3-30 characters
# Note: This pattern is duplicated in the dashboard for live feedback while typing.
# Backend validation is authoritative. Keep both in sync.
SLUG_PATTERN = re.compile(r"^[a-z0-9-]{3,30}$")

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MAX_SKILL_LENGTH = 50


def validate_slug(value: str) -> str:
    """
    Normalize and validate a slug.

    Args:
        value: The raw slug string.

    Returns:
        The normalized slug (lowercase, trimmed).

    Raises:
        ValueError: If the normalized slug does not match SLUG_PATTERN.
    """
    normalized = value.strip().lower()
    if not SLUG_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid username: '{normalized}'. "
            "Use 3-30 lowercase letters, numbers, and hyphens only.",
        )
    return normalized


def validate_optional_url(value: str | None) -> str | None:
    """
    Validate an optional http(s) URL.

    Empty strings are treated as "not set" and returned as None, matching how the
    dashboard forms submit cleared inputs.
    """
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    parsed = urlparse(trimmed)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL: '{trimmed}'")
    return trimmed


def validate_optional_email(value: str | None) -> str | None:
    """Validate an optional email address (empty string means not set)."""
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    if not EMAIL_PATTERN.match(trimmed):
        raise ValueError(f"Invalid email address: '{trimmed}'")
    return trimmed


def validate_hex_color(value: str) -> str:
    """Validate a #RRGGBB color."""
    if not HEX_COLOR_PATTERN.match(value):
        raise ValueError("Invalid color format")
    return value


def normalize_string_list(values: list[str], label: str = "Skill") -> list[str]:
    """
    Normalize a list of short display strings (skills, technologies).

    Args:
        values: List of strings.
        label: Name used in error messages.

    Returns:
        Trimmed values with empty strings filtered out and duplicates removed
        (preserving first occurrence order). Case is preserved since these are
        displayed as entered.

    Raises:
        ValueError: If a value exceeds MAX_SKILL_LENGTH.
    """
    normalized = []
    seen: set[str] = set()
    for value in values:
        trimmed = value.strip()
        if not trimmed:
            continue
        if len(trimmed) > MAX_SKILL_LENGTH:
            raise ValueError(
                f"{label} exceeds maximum length of {MAX_SKILL_LENGTH} characters: '{trimmed}'",
            )
        if trimmed not in seen:
            seen.add(trimmed)
            normalized.append(trimmed)
    return normalized
