"""
Publication structure models: Volume and Issue.
"""

from datetime import date
from typing import List, Optional, TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .article import Article


class Volume(Base, TimestampMixin):
    """Publication volume (typically one academic year)."""

    __tablename__ = "volumes"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    volume_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    issues: Mapped[List["Issue"]] = relationship(
        "Issue",
        back_populates="volume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Issue.issue_number",
    )

    def __repr__(self) -> str:
        return f"<Volume(number={self.volume_number})>"


class Issue(Base, TimestampMixin):
    """Issue within a volume."""

    __tablename__ = "issues"
    __table_args__ = (
        UniqueConstraint("volume_id", "issue_number", name="uq_issue_volume_number"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    volume_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("volumes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    issue_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    release_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    volume: Mapped["Volume"] = relationship("Volume", back_populates="issues")
    articles: Mapped[List["Article"]] = relationship(
        "Article",
        back_populates="publication_issue",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Issue(volume_id={self.volume_id}, number={self.issue_number})>"
