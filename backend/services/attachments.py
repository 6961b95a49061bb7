"""
Attachment service: uploads, captions, deletion and document conversion.
"""

import logging
import os
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.documents import ConversionFormat, convert_document
from adapters.storage import StorageAdapter, get_mime_type
from core.exceptions import NotFoundError, StorageError, ValidationError
from infrastructure.config.settings import settings
from infrastructure.database.models import Article, Attachment, AttachmentType

logger = logging.getLogger(__name__)

DOCUMENT_MIME_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
}
IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def resolve_content_type(filename: str, content_type: Optional[str]) -> str:
    """Trust the browser-supplied type unless it is missing or generic."""
    if content_type and content_type != "application/octet-stream":
        return content_type.split(";")[0].strip().lower()
    return get_mime_type(filename)


class AttachmentService:
    """Manages files attached to articles."""

    def __init__(self, db: AsyncSession, storage: StorageAdapter):
        self.db = db
        self.storage = storage

    async def get_attachment(self, attachment_id: str) -> Attachment:
        attachment = await self.db.get(Attachment, attachment_id)
        if not attachment:
            raise NotFoundError("Attachment not found")
        return attachment

    async def list_attachments(self, article_id: str) -> list[Attachment]:
        result = await self.db.execute(
            select(Attachment)
            .where(Attachment.article_id == article_id)
            .order_by(Attachment.photo_number.nulls_last(), Attachment.created_at)
        )
        return list(result.scalars().all())

    async def upload_attachment(
        self,
        article_id: str,
        data: bytes,
        filename: str,
        content_type: Optional[str],
        kind: str,
        caption: Optional[str] = None,
    ) -> Attachment:
        """
        Validate and store an uploaded file for an article.

        Args:
            article_id: Target article
            data: File bytes
            filename: Original filename
            content_type: MIME type reported by the client
            kind: "document" or "photo"
            caption: Optional photo caption

        Returns:
            The new Attachment row
        """
        article = await self.db.get(Article, article_id)
        if not article:
            raise NotFoundError("Article not found")

        mime_type = resolve_content_type(filename, content_type)
        if kind == "document":
            if mime_type not in DOCUMENT_MIME_TYPES:
                raise ValidationError("Invalid file type. Only Word documents (.doc, .docx) are allowed.")
            attachment_type = AttachmentType.WORD_DOCUMENT.value
            subdir = "documents"
        elif kind == "photo":
            if mime_type not in IMAGE_MIME_TYPES:
                raise ValidationError("Invalid file type. Only JPEG, PNG, GIF and WebP images are allowed.")
            attachment_type = AttachmentType.PHOTO.value
            subdir = "photos"
        else:
            raise ValidationError(f"Unknown attachment kind: {kind}")

        if not data:
            raise ValidationError("File is empty")
        if len(data) > settings.max_upload_size_bytes:
            raise ValidationError(f"File too large. Maximum size is {settings.max_upload_size_mb}MB.")

        stored = await self.storage.upload(data, filename, f"articles/{article_id}/{subdir}")

        existing = await self.db.scalar(
            select(func.count()).select_from(Attachment).where(Attachment.article_id == article_id)
        )
        attachment = Attachment(
            article_id=article_id,
            attachment_type=attachment_type,
            file_name=stored.name,
            original_file_name=os.path.basename(filename),
            file_path=stored.path,
            file_size=stored.size,
            mime_type=mime_type,
            caption=caption if kind == "photo" else None,
            photo_number=(existing or 0) + 1 if kind == "photo" else None,
        )
        self.db.add(attachment)
        if kind == "document":
            article.article_file_path = stored.path
        await self.db.flush()
        logger.info("Stored %s for article %s at %s", kind, article_id, stored.path)
        return attachment

    async def update_caption(self, attachment_id: str, caption: Optional[str]) -> Attachment:
        attachment = await self.get_attachment(attachment_id)
        attachment.caption = caption
        await self.db.flush()
        return attachment

    async def delete_attachment(self, attachment_id: str) -> None:
        attachment = await self.get_attachment(attachment_id)
        if not await self.storage.delete(attachment.file_path):
            logger.warning("Stored file missing for attachment %s", attachment_id)
        await self.db.execute(delete(Attachment).where(Attachment.id == attachment_id))
        await self.db.flush()

    async def delete_attachments(self, attachment_ids: list[str]) -> int:
        """Bulk delete. Storage failures are ignored so rows are always removed."""
        result = await self.db.execute(
            select(Attachment).where(Attachment.id.in_(attachment_ids))
        )
        attachments = list(result.scalars().all())
        for attachment in attachments:
            try:
                await self.storage.delete(attachment.file_path)
            except Exception as e:
                logger.warning("Ignoring storage error for %s: %s", attachment.file_path, e)
        if attachments:
            await self.db.execute(
                delete(Attachment).where(Attachment.id.in_([a.id for a in attachments]))
            )
            await self.db.flush()
        return len(attachments)

    async def read_file(self, path: str) -> bytes:
        try:
            data = await self.storage.get_file(path)
        except StorageError:
            data = None
        if data is None:
            raise NotFoundError("File not found")
        return data

    async def read_attachment(self, attachment_id: str) -> tuple[Attachment, bytes]:
        attachment = await self.get_attachment(attachment_id)
        return attachment, await self.read_file(attachment.file_path)

    async def convert_attachment(
        self,
        attachment_id: str,
        fmt: ConversionFormat = ConversionFormat.MARKDOWN,
    ) -> str:
        attachment, data = await self.read_attachment(attachment_id)
        if attachment.attachment_type != AttachmentType.WORD_DOCUMENT.value:
            raise ValidationError("Only Word documents can be converted")
        return convert_document(data, fmt)

    async def import_document_content(self, article_id: str, attachment_id: Optional[str] = None) -> Article:
        """Convert the article's Word document to Markdown and store it as the article content."""
        article = await self.db.get(Article, article_id)
        if not article:
            raise NotFoundError("Article not found")

        if attachment_id:
            attachment = await self.get_attachment(attachment_id)
            if attachment.article_id != article_id:
                raise NotFoundError("Attachment not found")
        else:
            result = await self.db.execute(
                select(Attachment)
                .where(
                    Attachment.article_id == article_id,
                    Attachment.attachment_type == AttachmentType.WORD_DOCUMENT.value,
                )
                .order_by(Attachment.created_at.desc())
                .limit(1)
            )
            attachment = result.scalar_one_or_none()
            if not attachment:
                raise NotFoundError("Article has no Word document")

        article.content = await self.convert_attachment(attachment.id, ConversionFormat.MARKDOWN)
        await self.db.flush()
        logger.info("Imported content for article %s from %s", article_id, attachment.file_path)
        return article
