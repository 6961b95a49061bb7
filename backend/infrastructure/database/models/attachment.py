"""
Attachment database model (photos and Word documents).
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .article import Article


class AttachmentType(str, Enum):
    """Attachment kind."""

    WORD_DOCUMENT = "word_document"
    PHOTO = "photo"
    GRAPHIC = "graphic"
    OTHER = "other"


class Attachment(Base, TimestampMixin):
    """File attached to an article."""

    __tablename__ = "attachments"

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
    attachment_type: Mapped[str] = mapped_column(
        String(50),
        default=AttachmentType.OTHER.value,
        nullable=False,
    )

    # Storage
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    original_file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Photo metadata
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photo_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    article: Mapped["Article"] = relationship("Article", back_populates="attachments")

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id}, file={self.original_file_name})>"

    @property
    def is_photo(self) -> bool:
        return self.attachment_type in (AttachmentType.PHOTO.value, AttachmentType.GRAPHIC.value)
