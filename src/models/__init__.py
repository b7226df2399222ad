"""SQLAlchemy models."""
from models.base import Base, JSONDocument, TimestampMixin
from models.portfolio import Portfolio
from models.user import User

__all__ = [
    "Base",
    "JSONDocument",
    "Portfolio",
    "TimestampMixin",
    "User",
]
