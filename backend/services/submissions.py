"""
Intake of article submissions posted by the form automation webhook.
"""

import logging
import re
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter
from api.schemas.submissions import SubmissionRequest
from infrastructure.database.models import (
    Article,
    ArticleMultimediaType,
    Attachment,
    AttachmentType,
    AutomationStatus,
    InternalStatus,
    StatusHistory,
)
from services.authors import AuthorService
from services.payments import PaymentService

logger = logging.getLogger(__name__)

FORM_SUBMISSION = "Form Submission"

_UNSAFE_FOLDER_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def submission_base_dir(given_name: str, surname: str, title: str) -> str:
    """articles/<Given_Surname>/<first 50 chars of title>, non-alphanumerics as '_'."""
    author_folder = _UNSAFE_FOLDER_CHARS.sub("_", f"{given_name}_{surname}")
    article_folder = _UNSAFE_FOLDER_CHARS.sub("_", title[:50])
    return f"articles/{author_folder}/{article_folder}"


class SubmissionService:
    """Creates authors, articles and attachments from a form submission."""

    def __init__(self, db: AsyncSession, storage: StorageAdapter):
        self.db = db
        self.storage = storage

    async def process(self, submission: SubmissionRequest) -> dict:
        """
        Process a validated submission.

        Steps:
            1. Find or create the author by email
            2. Create the article (Pending Review / Processing)
            3. Record multimedia types
            4. Decode and store attachments
            5. Mark automation as Pending Review and write the history row
            6. Calculate the initial payment

        Returns:
            Dict with article_id, author_id and attachment_ids
        """
        author_data = submission.author
        author, created = await AuthorService(self.db).find_or_create_author(
            email=author_data.email,
            given_name=author_data.given_name,
            surname=author_data.surname,
            role=author_data.role.value,
            auto_deposit_available=submission.auto_deposit_available,
            etransfer_email=submission.etransfer_email,
        )
        if created:
            logger.info("Created author %s from submission", author.id)

        article = Article(
            title=submission.title.strip(),
            author_id=author.id,
            article_tier=submission.article_tier.value,
            internal_status=InternalStatus.PENDING_REVIEW.value,
            automation_status=AutomationStatus.PROCESSING.value,
            prefers_anonymity=submission.prefers_anonymity,
            form_response_id=submission.form_response_id,
            submitted_at=submission.submitted_at or datetime.now(timezone.utc),
        )
        self.db.add(article)
        await self.db.flush()

        for media in dict.fromkeys(submission.multimedia_types):
            self.db.add(ArticleMultimediaType(article_id=article.id, multimedia_type=media.value))

        base_dir = submission_base_dir(author_data.given_name, author_data.surname, submission.title)
        attachment_ids = []
        for item in submission.attachments:
            if item.type == AttachmentType.PHOTO and item.photo_number:
                directory = f"{base_dir}/photos/Photo_{item.photo_number}"
            elif item.type == AttachmentType.WORD_DOCUMENT:
                directory = f"{base_dir}/documents"
            else:
                directory = base_dir

            stored = await self.storage.upload(item.decoded(), item.name, directory)
            attachment = Attachment(
                article_id=article.id,
                attachment_type=item.type.value,
                file_name=stored.name,
                original_file_name=item.name,
                file_path=stored.path,
                file_size=stored.size,
                mime_type=item.mime_type or stored.mime_type,
                caption=item.caption,
                photo_number=item.photo_number,
            )
            self.db.add(attachment)
            await self.db.flush()
            attachment_ids.append(attachment.id)
            if item.type == AttachmentType.WORD_DOCUMENT:
                article.article_file_path = stored.path

        article.automation_status = AutomationStatus.PENDING_REVIEW.value
        self.db.add(
            StatusHistory(
                article_id=article.id,
                from_status=None,
                to_status=InternalStatus.PENDING_REVIEW.value,
                changed_by=FORM_SUBMISSION,
                notes="Submitted via form",
            )
        )
        await self.db.flush()

        await PaymentService(self.db).calculate_article_payment(article.id)

        logger.info(
            "Submission processed: article %s with %d attachment(s)",
            article.id,
            len(attachment_ids),
        )
        return {
            "article_id": article.id,
            "author_id": author.id,
            "attachment_ids": attachment_ids,
        }

