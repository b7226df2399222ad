"""Pydantic schemas for portfolio endpoints."""
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.validators import (
    normalize_string_list,
    validate_hex_color,
    validate_optional_email,
    validate_optional_url,
    validate_slug,
)

if TYPE_CHECKING:
    from models.portfolio import Portfolio


class Section(StrEnum):
    """Content sections that can be hidden as a whole or item by item."""

    EXPERIENCE = "experience"
    PROJECTS = "projects"
    CERTIFICATIONS = "certifications"
    SKILLS = "skills"
    SOCIAL_LINKS = "social_links"


# Sections backed by lists of items carrying a persisted id
ID_KEYED_SECTIONS = (Section.EXPERIENCE, Section.PROJECTS, Section.CERTIFICATIONS)

# Sections whose hidden entries are literal values (skill text / platform key)
VALUE_KEYED_SECTIONS = (Section.SKILLS, Section.SOCIAL_LINKS)

ThemeMode = Literal["light", "dark", "system"]


# =============================================================================
# Section items
# =============================================================================


class SectionItem(BaseModel):
    """Base for list items. Items without an id get one minted when saved."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, max_length=64)


class Experience(SectionItem):
    """A position in the experience timeline."""

    title: str = Field(min_length=1, max_length=200)
    company: str = Field(min_length=1, max_length=200)
    location: str | None = Field(default=None, max_length=200)
    start_date: str = Field(min_length=1, max_length=50)
    end_date: str | None = Field(default=None, max_length=50)
    current: bool = False
    description: str = Field(min_length=10, max_length=5000)


class Project(SectionItem):
    """A showcased project."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=10, max_length=5000)
    image: str | None = None
    technologies: list[str]
    live_url: str | None = None
    github_url: str | None = None
    featured: bool = False

    @field_validator("image", "live_url", "github_url")
    @classmethod
    def check_urls(cls, v: str | None) -> str | None:
        """Validate optional URLs."""
        return validate_optional_url(v)

    @field_validator("technologies")
    @classmethod
    def check_technologies(cls, v: list[str]) -> list[str]:
        """Normalize technologies and require at least one."""
        normalized = normalize_string_list(v, label="Technology")
        if not normalized:
            raise ValueError("Add at least one technology")
        return normalized


class Certification(SectionItem):
    """An earned certification."""

    title: str = Field(min_length=1, max_length=200)
    image: str | None = None
    description: str = Field(min_length=1, max_length=2000)
    technologies: list[str] = []
    date: str = Field(min_length=1, max_length=50)

    @field_validator("image")
    @classmethod
    def check_image(cls, v: str | None) -> str | None:
        """Validate optional image URL."""
        return validate_optional_url(v)

    @field_validator("technologies")
    @classmethod
    def check_technologies(cls, v: list[str]) -> list[str]:
        """Normalize technologies."""
        return normalize_string_list(v, label="Technology")


class SocialLinks(BaseModel):
    """Social links keyed by platform. Unset platforms are None."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    whatsapp: str | None = Field(default=None, max_length=50)
    twitter: str | None = None
    github: str | None = None
    linkedin: str | None = None
    website: str | None = None
    instagram: str | None = None
    youtube: str | None = None

    @field_validator("twitter", "github", "linkedin", "website", "instagram", "youtube")
    @classmethod
    def check_urls(cls, v: str | None) -> str | None:
        """Validate URL-valued platforms."""
        return validate_optional_url(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str | None) -> str | None:
        """Validate email address."""
        return validate_optional_email(v)

    @field_validator("whatsapp")
    @classmethod
    def check_whatsapp(cls, v: str | None) -> str | None:
        """Treat blank handles as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    def platforms(self) -> dict[str, str]:
        """Return the platforms that have a value, in declaration order."""
        return {key: value for key, value in self.model_dump().items() if value}


# =============================================================================
# Theme and visibility
# =============================================================================


class ThemeConfig(BaseModel):
    """Colors, font, and mode for the public page."""

    model_config = ConfigDict(extra="ignore")

    primary_color: str = "#8B5CF6"
    secondary_color: str = "#EC4899"
    font_family: str = Field(default="Inter", min_length=1, max_length=100)
    mode: ThemeMode = "system"

    @field_validator("primary_color", "secondary_color")
    @classmethod
    def check_colors(cls, v: str) -> str:
        """Validate hex colors."""
        return validate_hex_color(v)


class SectionVisibility(BaseModel):
    """Whole-section show/hide toggles. Every section is visible by default."""

    model_config = ConfigDict(extra="ignore")

    show_experience: bool = True
    show_projects: bool = True
    show_certifications: bool = True
    show_skills: bool = True
    show_social_links: bool = True

    def is_visible(self, section: Section) -> bool:
        """Whether the given section is shown."""
        return getattr(self, f"show_{section.value}")


class HiddenItems(BaseModel):
    """
    Individually hidden entries per section.

    List-backed sections hold item ids; skills hold the literal skill text and
    social_links hold platform keys.
    """

    model_config = ConfigDict(extra="ignore")

    experience: list[str] = []
    projects: list[str] = []
    certifications: list[str] = []
    skills: list[str] = []
    social_links: list[str] = []

    @field_validator("experience", "projects", "certifications", "skills", "social_links")
    @classmethod
    def dedupe(cls, v: list[str]) -> list[str]:
        """Drop duplicates, preserving order."""
        return list(dict.fromkeys(v))

    def for_section(self, section: Section) -> list[str]:
        """Hidden keys for a section."""
        return getattr(self, section.value)


# =============================================================================
# Content view
# =============================================================================


class PortfolioContent(BaseModel):
    """Everything displayed on a portfolio page."""

    display_name: str | None = None
    headline: str = ""
    bio: str = ""
    avatar_url: str | None = None
    cover_image_url: str | None = None
    resume_url: str | None = None
    experience: list[Experience] = []
    projects: list[Project] = []
    certifications: list[Certification] = []
    skills: list[str] = []
    social_links: SocialLinks = SocialLinks()

    @classmethod
    def from_model(cls, portfolio: "Portfolio") -> "PortfolioContent":
        """Assemble the content view from a portfolio row."""
        return cls(
            display_name=portfolio.display_name,
            headline=portfolio.headline or "",
            bio=portfolio.bio or "",
            avatar_url=portfolio.avatar_url,
            cover_image_url=portfolio.cover_image_url,
            resume_url=portfolio.resume_url,
            experience=portfolio.experience or [],
            projects=portfolio.projects or [],
            certifications=portfolio.certifications or [],
            skills=portfolio.skills or [],
            social_links=portfolio.social_links or {},
        )


# =============================================================================
# Requests
# =============================================================================


class PortfolioCreate(BaseModel):
    """Schema for creating a portfolio."""

    slug: str
    display_name: str | None = Field(default=None, min_length=2, max_length=50)
    headline: str = Field(default="", max_length=100)
    bio: str = Field(default="", max_length=500)
    skills: list[str] = []
    social_links: SocialLinks = SocialLinks()
    theme_config: ThemeConfig = ThemeConfig()
    is_published: bool = False

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str) -> str:
        """Normalize and validate slug."""
        return validate_slug(v)

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v: list[str]) -> list[str]:
        """Normalize skills."""
        return normalize_string_list(v)


class ProfileUpdate(BaseModel):
    """
    Schema for the profile form.

    Replaces display name, slug, headline, bio, skills, and social links together.
    Creates the portfolio when the user has none yet.
    """

    display_name: str = Field(min_length=2, max_length=50)
    slug: str
    headline: str = Field(default="", max_length=100)
    bio: str = Field(default="", max_length=500)
    skills: list[str] = []
    social_links: SocialLinks = SocialLinks()

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str) -> str:
        """Normalize and validate slug."""
        return validate_slug(v)

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v: list[str]) -> list[str]:
        """Normalize skills."""
        return normalize_string_list(v)


class ExperienceUpdate(BaseModel):
    """Complete replacement for the experience list."""

    experience: list[Experience]


class ProjectsUpdate(BaseModel):
    """Complete replacement for the projects list."""

    projects: list[Project]


class CertificationsUpdate(BaseModel):
    """Complete replacement for the certifications list."""

    certifications: list[Certification]


class SkillsUpdate(BaseModel):
    """Complete replacement for the skills list."""

    skills: list[str]

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v: list[str]) -> list[str]:
        """Normalize skills."""
        return normalize_string_list(v)


class ImageUpdate(BaseModel):
    """Set or clear (null / empty string) an image URL."""

    url: str | None = None

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str | None) -> str | None:
        """Validate URL."""
        return validate_optional_url(v)


class ResumeUpdate(BaseModel):
    """Set or clear the resume URL."""

    resume_url: str | None = None

    @field_validator("resume_url")
    @classmethod
    def check_url(cls, v: str | None) -> str | None:
        """Validate URL."""
        return validate_optional_url(v)


class SlugUpdate(BaseModel):
    """Rename the portfolio's public URL."""

    slug: str

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str) -> str:
        """Normalize and validate slug."""
        return validate_slug(v)


class PublishUpdate(BaseModel):
    """Set the publish state explicitly."""

    is_published: bool


# =============================================================================
# Responses
# =============================================================================


class PortfolioResponse(BaseModel):
    """Owner view of a portfolio - raw content plus visibility settings."""

    id: UUID
    slug: str
    content: PortfolioContent
    theme_config: ThemeConfig
    section_visibility: SectionVisibility
    hidden_items: HiddenItems
    is_published: bool
    views: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, portfolio: "Portfolio") -> "PortfolioResponse":
        """Build the owner view from a portfolio row."""
        return cls(
            id=portfolio.id,
            slug=portfolio.slug,
            content=PortfolioContent.from_model(portfolio),
            theme_config=ThemeConfig.model_validate(portfolio.theme_config or {}),
            section_visibility=SectionVisibility.model_validate(
                portfolio.section_visibility or {},
            ),
            hidden_items=HiddenItems.model_validate(portfolio.hidden_items or {}),
            is_published=portfolio.is_published,
            views=portfolio.views,
            created_at=portfolio.created_at,
            updated_at=portfolio.updated_at,
        )


class PublicPortfolioResponse(BaseModel):
    """Public view of a published portfolio with hidden content removed."""

    slug: str
    display_name: str
    content: PortfolioContent
    theme_config: ThemeConfig
    views: int
    updated_at: datetime


class SlugAvailabilityResponse(BaseModel):
    """Advisory slug check result. Not a reservation."""

    slug: str
    available: bool
    reason: Literal["available", "taken", "invalid_format"]


class ExportedPortfolio(BaseModel):
    """Portfolio fields included in an export."""

    slug: str
    content: PortfolioContent
    theme_config: ThemeConfig
    section_visibility: SectionVisibility
    hidden_items: HiddenItems
    is_published: bool


class PortfolioExport(BaseModel):
    """Owner export - raw, unfiltered content."""

    exported_at: datetime
    portfolio: ExportedPortfolio
