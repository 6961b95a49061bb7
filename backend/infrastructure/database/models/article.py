"""
Article database models: Article, multimedia types, notes and status history.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, utc_now

if TYPE_CHECKING:
    from .attachment import Attachment
    from .author import Author
    from .publication import Issue


class ArticleTier(str, Enum):
    """Payment tier selected per article."""

    TIER_1 = "Tier 1 (Basic)"
    TIER_2 = "Tier 2 (Standard)"
    TIER_3 = "Tier 3 (Advanced)"


class InternalStatus(str, Enum):
    """Editorial workflow status."""

    DRAFT = "Draft"
    PENDING_REVIEW = "Pending Review"
    IN_REVIEW = "In Review"
    NEEDS_REVISION = "Needs Revision"
    APPROVED = "Approved"
    IN_EDITING = "In Editing"
    READY_FOR_PUBLICATION = "Ready for Publication"
    PUBLISHED = "Published"
    ARCHIVED = "Archived"


class AutomationStatus(str, Enum):
    """Status of the submission intake pipeline."""

    PROCESSING = "Processing"
    PENDING_REVIEW = "Pending Review"
    COMPLETED = "Completed"
    FAILED = "Failed"


class MultimediaType(str, Enum):
    """Kinds of media a contributor declares with a submission."""

    PHOTO = "Photo"
    GRAPHIC = "Graphic"
    VIDEO = "Video"
    AUDIO = "Audio"
    OTHER = "Other"


class Article(Base, TimestampMixin):
    """Article submission model."""

    __tablename__ = "articles"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Author
    author_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("authors.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    article_tier: Mapped[str] = mapped_column(
        String(50),
        default=ArticleTier.TIER_1.value,
        nullable=False,
    )
    internal_status: Mapped[str] = mapped_column(
        String(50),
        default=InternalStatus.DRAFT.value,
        nullable=False,
        index=True,
    )
    automation_status: Mapped[str] = mapped_column(
        String(50),
        default=AutomationStatus.COMPLETED.value,
        nullable=False,
    )
    prefers_anonymity: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    article_file_path: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # Markdown
    feedback_letter: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Payment
    payment_status: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # cents
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_is_manual: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_rate_snapshot: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    payment_calculated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Bonus flags (has_multimedia_bonus=None means derive from multimedia types)
    has_research_bonus: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_time_sensitive_bonus: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_professional_photos: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_professional_graphics: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_multimedia_bonus: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Publication (legacy integer columns kept for migrate-legacy)
    volume: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    issue: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    issue_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("issues.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Intake
    form_response_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    author: Mapped["Author"] = relationship("Author", back_populates="articles")
    publication_issue: Mapped[Optional["Issue"]] = relationship("Issue", back_populates="articles")
    attachments: Mapped[List["Attachment"]] = relationship(
        "Attachment",
        back_populates="article",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Attachment.created_at",
    )
    notes: Mapped[List["ArticleNote"]] = relationship(
        "ArticleNote",
        back_populates="article",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ArticleNote.created_at.desc()",
    )
    status_history: Mapped[List["StatusHistory"]] = relationship(
        "StatusHistory",
        back_populates="article",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StatusHistory.changed_at.desc()",
    )
    multimedia_types: Mapped[List["ArticleMultimediaType"]] = relationship(
        "ArticleMultimediaType",
        back_populates="article",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, title={self.title[:30]}, status={self.internal_status})>"


class ArticleMultimediaType(Base):
    """Multimedia type declared for an article."""

    __tablename__ = "article_multimedia_types"
    __table_args__ = (
        UniqueConstraint("article_id", "multimedia_type", name="uq_article_multimedia_type"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    article_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    multimedia_type: Mapped[str] = mapped_column(String(50), nullable=False)

    article: Mapped["Article"] = relationship("Article", back_populates="multimedia_types")


class ArticleNote(Base, TimestampMixin):
    """Internal editorial note."""

    __tablename__ = "article_notes"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    article_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    article: Mapped["Article"] = relationship("Article", back_populates="notes")


class StatusHistory(Base):
    """Audit row written on every status transition."""

    __tablename__ = "status_history"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    article_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    to_status: Mapped[str] = mapped_column(String(50), nullable=False)
    changed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    article: Mapped["Article"] = relationship("Article", back_populates="status_history")

    def __repr__(self) -> str:
        return f"<StatusHistory({self.from_status!r} -> {self.to_status!r})>"
