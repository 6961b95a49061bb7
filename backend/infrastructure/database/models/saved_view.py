"""
Saved article-list view model.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class SavedArticleView(Base, TimestampMixin):
    """Named combination of article list filters."""

    __tablename__ = "saved_article_views"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Filters
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    tier: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    search: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sort_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    sort_order: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    view_mode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
