"""User model for storing authenticated users."""
from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.portfolio import Portfolio


class User(Base, UUIDv7Mixin, TimestampMixin):
    """User model - local mirror of the identity provider's user record."""

    __tablename__ = "users"

    # id provided by UUIDv7Mixin
    external_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        comment="Identity provider 'sub' claim - unique identifier from the provider",
    )
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    display_name: Mapped[str] = mapped_column(String(255), default="User")
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    portfolio: Mapped["Portfolio | None"] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
    )
