"""Portfolio model - the single published page document owned by a user."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, JSONDocument, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.user import User


class Portfolio(Base, UUIDv7Mixin, TimestampMixin):
    """
    Portfolio document.

    Each content section is its own JSON column so that replacing one section
    (e.g. the experience list) never rewrites another. Item lists hold dicts
    shaped like the schemas in schemas.portfolio, each with a string "id".

    section_visibility:
        {"show_experience": true, "show_projects": true, "show_certifications": true,
         "show_skills": true, "show_social_links": true}

    hidden_items:
        {"experience": ["<item id>"], "projects": [...], "certifications": [...],
         "skills": ["<literal skill>"], "social_links": ["<platform key>"]}
    """

    __tablename__ = "portfolios"

    # id provided by UUIDv7Mixin
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
    )
    slug: Mapped[str] = mapped_column(
        String(30),
        unique=True,
        index=True,
        comment="Public URL segment, stored lowercase",
    )

    display_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    headline: Mapped[str] = mapped_column(String(100), default="")
    bio: Mapped[str] = mapped_column(Text, default="")
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    resume_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    experience: Mapped[list] = mapped_column(JSONDocument, default=list)
    projects: Mapped[list] = mapped_column(JSONDocument, default=list)
    certifications: Mapped[list] = mapped_column(JSONDocument, default=list)
    skills: Mapped[list] = mapped_column(JSONDocument, default=list)
    social_links: Mapped[dict] = mapped_column(JSONDocument, default=dict)

    theme_config: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    section_visibility: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    hidden_items: Mapped[dict] = mapped_column(JSONDocument, default=dict)

    is_published: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
    )
    views: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))

    user: Mapped["User"] = relationship(back_populates="portfolio")
