"""
Article service: editorial workflow, notes and article-level duplicates.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from adapters.storage import StorageAdapter
from api.utils import escape_like
from core.domain.duplicates import find_duplicate_articles
from core.exceptions import NotFoundError, ValidationError
from infrastructure.database.models import (
    Article,
    ArticleMultimediaType,
    ArticleNote,
    ArticleTier,
    Attachment,
    AutomationStatus,
    InternalStatus,
    Issue,
    StatusHistory,
)
from services.authors import AuthorService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "article_tier",
    "content",
    "feedback_letter",
    "is_featured",
    "prefers_anonymity",
    "issue_id",
    "volume",
    "issue",
)

# NOT NULL columns that a partial update may not clear
REQUIRED_FIELDS = ("title", "article_tier", "is_featured", "prefers_anonymity")

SORT_COLUMNS = {
    "title": Article.title,
    "submitted_at": Article.submitted_at,
    "created_at": Article.created_at,
    "updated_at": Article.updated_at,
    "payment_amount": Article.payment_amount,
    "status": Article.internal_status,
}

MANUAL_ENTRY = "Manual Entry"

ARTICLE_DETAIL_OPTIONS = (
    selectinload(Article.author),
    selectinload(Article.attachments),
    selectinload(Article.notes),
    selectinload(Article.status_history),
    selectinload(Article.multimedia_types),
    selectinload(Article.publication_issue).selectinload(Issue.volume),
)


def _validate_tier(tier: Optional[str]) -> None:
    if tier is not None and tier not in {t.value for t in ArticleTier}:
        raise ValidationError(f"Unknown article tier: {tier}")


def _validate_status(status: str) -> None:
    if status not in {s.value for s in InternalStatus}:
        raise ValidationError(f"Unknown status: {status}")


class ArticleService:
    """Article CRUD and status workflow."""

    def __init__(self, db: AsyncSession, storage: Optional[StorageAdapter] = None):
        self.db = db
        self.storage = storage

    async def get_article(self, article_id: str) -> Article:
        """Load an article with author, attachments, notes, history and issue."""
        result = await self.db.execute(
            select(Article)
            .options(*ARTICLE_DETAIL_OPTIONS)
            .where(Article.id == article_id)
            .execution_options(populate_existing=True)
        )
        article = result.scalar_one_or_none()
        if not article:
            raise NotFoundError("Article not found")
        return article

    async def list_articles(
        self,
        status: Optional[str] = None,
        tier: Optional[str] = None,
        author_id: Optional[str] = None,
        issue_id: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "submitted_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Article], int]:
        query = select(Article).options(selectinload(Article.author))
        count_query = select(func.count()).select_from(Article)

        conditions = []
        if status:
            conditions.append(Article.internal_status == status)
        if tier:
            conditions.append(Article.article_tier == tier)
        if author_id:
            conditions.append(Article.author_id == author_id)
        if issue_id:
            conditions.append(Article.issue_id == issue_id)
        if search:
            conditions.append(Article.title.ilike(f"%{escape_like(search)}%", escape="\\"))

        for condition in conditions:
            query = query.where(condition)
            count_query = count_query.where(condition)

        column = SORT_COLUMNS.get(sort_by, Article.submitted_at)
        order = column.asc() if sort_order == "asc" else column.desc()
        query = query.order_by(order.nulls_last(), Article.created_at.desc())

        total = await self.db.scalar(count_query) or 0
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def create_article(
        self,
        title: str,
        article_tier: str = ArticleTier.TIER_1.value,
        author_id: Optional[str] = None,
        author_given_name: Optional[str] = None,
        author_surname: Optional[str] = None,
        author_email: Optional[str] = None,
        content: Optional[str] = None,
        prefers_anonymity: bool = False,
        issue_id: Optional[str] = None,
        multimedia_types: Iterable[str] = (),
        changed_by: str = MANUAL_ENTRY,
    ) -> Article:
        """
        Create an article by hand.

        Either author_id or all of given name, surname and email must be
        supplied; an existing author with the same email is reused.
        """
        _validate_tier(article_tier)
        authors = AuthorService(self.db)
        await self._ensure_issue(issue_id)

        if author_id:
            author = await authors.get_author(author_id)
        else:
            if not (author_given_name and author_surname and author_email):
                raise ValidationError(
                    "Author given name, surname and email are required when no author is selected"
                )
            author, _ = await authors.find_or_create_author(
                email=author_email,
                given_name=author_given_name,
                surname=author_surname,
            )

        article = Article(
            title=title.strip(),
            author_id=author.id,
            article_tier=article_tier,
            internal_status=InternalStatus.DRAFT.value,
            automation_status=AutomationStatus.COMPLETED.value,
            content=content,
            prefers_anonymity=prefers_anonymity,
            issue_id=issue_id,
            submitted_at=datetime.now(timezone.utc),
        )
        self.db.add(article)
        await self.db.flush()

        for media in set(multimedia_types):
            self.db.add(ArticleMultimediaType(article_id=article.id, multimedia_type=media))

        self.db.add(
            StatusHistory(
                article_id=article.id,
                from_status=None,
                to_status=InternalStatus.DRAFT.value,
                changed_by=changed_by,
                notes="Article created manually",
            )
        )
        await self.db.flush()
        logger.info("Created article %s for author %s", article.id, author.id)
        return await self.get_article(article.id)

    async def _ensure_issue(self, issue_id: Optional[str]) -> None:
        if issue_id and not await self.db.get(Issue, issue_id):
            raise NotFoundError("Issue not found")

    async def update_article(self, article_id: str, **fields) -> Article:
        article = await self.get_article(article_id)
        _validate_tier(fields.get("article_tier"))
        nulls = [key for key in REQUIRED_FIELDS if key in fields and fields[key] is None]
        if nulls:
            raise ValidationError(f"{', '.join(nulls)} cannot be null")
        await self._ensure_issue(fields.get("issue_id"))
        for key, value in fields.items():
            if key in EDITABLE_FIELDS:
                setattr(article, key, value)
        await self.db.flush()
        return await self.get_article(article_id)

    async def set_multimedia_types(self, article_id: str, types: Iterable[str]) -> Article:
        await self.get_article(article_id)
        await self.db.execute(
            delete(ArticleMultimediaType).where(ArticleMultimediaType.article_id == article_id)
        )
        for media in sorted(set(types)):
            self.db.add(ArticleMultimediaType(article_id=article_id, multimedia_type=media))
        await self.db.flush()
        return await self.get_article(article_id)

    async def update_status(
        self,
        article_id: str,
        to_status: str,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Article:
        """Move an article to a new status and record the transition."""
        _validate_status(to_status)
        article = await self.get_article(article_id)
        from_status = article.internal_status
        if from_status == to_status:
            return article

        article.internal_status = to_status
        self.db.add(
            StatusHistory(
                article_id=article.id,
                from_status=from_status,
                to_status=to_status,
                changed_by=changed_by,
                notes=notes,
            )
        )
        await self.db.flush()
        logger.info("Article %s status %s -> %s", article_id, from_status, to_status)
        return await self.get_article(article_id)

    async def bulk_update_status(
        self,
        article_ids: list[str],
        to_status: str,
        changed_by: Optional[str] = None,
    ) -> dict:
        _validate_status(to_status)
        updated = 0
        missing: list[str] = []
        for article_id in article_ids:
            try:
                article = await self.get_article(article_id)
            except NotFoundError:
                missing.append(article_id)
                continue
            if article.internal_status != to_status:
                await self.update_status(article_id, to_status, changed_by, "Bulk status update")
                updated += 1
        return {"updated": updated, "not_found": missing}

    async def list_status_history(self, article_id: str) -> list[StatusHistory]:
        await self._ensure_exists(article_id)
        result = await self.db.execute(
            select(StatusHistory)
            .where(StatusHistory.article_id == article_id)
            .order_by(StatusHistory.changed_at.desc())
        )
        return list(result.scalars().all())

    async def delete_article(self, article_id: str) -> None:
        """Delete stored files, then the article and its dependent rows."""
        await self._ensure_exists(article_id)

        if self.storage:
            paths = await self.db.scalars(
                select(Attachment.file_path).where(Attachment.article_id == article_id)
            )
            for path in paths.all():
                try:
                    await self.storage.delete(path)
                except Exception as e:
                    logger.warning("Failed to delete file %s: %s", path, e)

        for model in (Attachment, ArticleNote, StatusHistory, ArticleMultimediaType):
            await self.db.execute(delete(model).where(model.article_id == article_id))
        await self.db.execute(delete(Article).where(Article.id == article_id))
        await self.db.flush()
        logger.info("Deleted article %s", article_id)

    async def _ensure_exists(self, article_id: str) -> None:
        exists = await self.db.scalar(select(func.count()).where(Article.id == article_id))
        if not exists:
            raise NotFoundError("Article not found")

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def add_note(self, article_id: str, content: str, created_by: Optional[str] = None) -> ArticleNote:
        await self._ensure_exists(article_id)
        if not content or not content.strip():
            raise ValidationError("Note content is required")
        note = ArticleNote(article_id=article_id, content=content.strip(), created_by=created_by)
        self.db.add(note)
        await self.db.flush()
        return note

    async def list_notes(self, article_id: str) -> list[ArticleNote]:
        await self._ensure_exists(article_id)
        result = await self.db.execute(
            select(ArticleNote)
            .where(ArticleNote.article_id == article_id)
            .order_by(ArticleNote.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_note(self, article_id: str, note_id: str) -> None:
        note = await self.db.get(ArticleNote, note_id)
        if not note or note.article_id != article_id:
            raise NotFoundError("Note not found")
        await self.db.delete(note)
        await self.db.flush()

    # ------------------------------------------------------------------
    # Duplicates
    # ------------------------------------------------------------------

    async def find_duplicate_articles(self) -> list[list[Article]]:
        """Articles sharing a normalized title and author email."""
        result = await self.db.execute(
            select(Article).options(selectinload(Article.author)).order_by(Article.created_at)
        )
        return find_duplicate_articles(result.scalars().all())
