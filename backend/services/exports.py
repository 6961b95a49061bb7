"""
Export service: Word documents, issue ZIPs, WordPress JSON bundles and CSV.
"""

import csv
import io
import json
import logging
import secrets
import zipfile
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from adapters.documents import DOCX_MIME, export_filename, markdown_to_docx
from adapters.storage import StorageAdapter
from core.domain.payment import format_cents
from core.exceptions import NotFoundError, ValidationError
from infrastructure.database.models import (
    Article,
    AttachmentType,
    ContributorRole,
    Issue,
    Volume,
)
from services.articles import ArticleService

logger = logging.getLogger(__name__)

ZIP_MIME = "application/zip"
CSV_MIME = "text/csv"

CSV_COLUMNS = [
    "id",
    "title",
    "author",
    "email",
    "tier",
    "status",
    "volume",
    "issue",
    "payment",
    "paid",
    "submitted_at",
]


@dataclass
class ExportFile:
    """A generated download."""

    filename: str
    media_type: str
    content: bytes


def author_display_name(article: Article) -> str:
    if article.prefers_anonymity:
        return "Anonymous"
    if article.author:
        return f"{article.author.given_name} {article.author.surname}".strip()
    return "Unknown Author"


def _photos(article: Article) -> list:
    photos = [a for a in article.attachments if a.attachment_type == AttachmentType.PHOTO.value]
    return sorted(photos, key=lambda p: (p.photo_number is None, p.photo_number or 0))


class ExportService:
    """Builds export files from articles and their stored attachments."""

    def __init__(self, db: AsyncSession, storage: StorageAdapter):
        self.db = db
        self.storage = storage

    async def _read(self, path: str) -> Optional[bytes]:
        data = await self.storage.get_file(path)
        if data is None:
            logger.warning("Stored file missing during export: %s", path)
        return data

    async def _issue_articles(self, issue_id: str) -> list[Article]:
        result = await self.db.execute(
            select(Article)
            .options(selectinload(Article.author), selectinload(Article.attachments))
            .where(Article.issue_id == issue_id)
            .order_by(Article.title)
        )
        return list(result.scalars().all())

    async def article_docx(self, article_id: str) -> ExportFile:
        article = await ArticleService(self.db).get_article(article_id)
        name = export_filename(article.title)
        return ExportFile(
            filename=f"{name}.docx",
            media_type=DOCX_MIME,
            content=markdown_to_docx(article.content or "", article.title, author_display_name(article)),
        )

    async def issue_zip(self, issue_id: str) -> ExportFile:
        """
        Package every article in an issue as Word documents plus photo folders.

        Layout:
            Volume N/Issue M - Title/<article>/<article>.docx
            Volume N/Issue M - Title/<article>/Photos/Photo k/<file>
            Volume N/Issue M - Title/<article>/Photos/Photo k/Caption.txt
        """
        result = await self.db.execute(
            select(Issue).options(selectinload(Issue.volume)).where(Issue.id == issue_id)
        )
        issue = result.scalar_one_or_none()
        if not issue:
            raise NotFoundError("Issue not found")

        articles = await self._issue_articles(issue_id)
        if not articles:
            raise NotFoundError("No articles found for this issue")

        volume_number = issue.volume.volume_number
        issue_folder = f"Issue {issue.issue_number}"
        if issue.title:
            issue_folder += f" - {issue.title}"
        base_path = f"Volume {volume_number}/{issue_folder}"

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            for article in articles:
                folder = export_filename(article.title)
                article_path = f"{base_path}/{folder}"
                author_name = author_display_name(article)

                zf.writestr(
                    f"{article_path}/{folder}.docx",
                    markdown_to_docx(article.content or "", article.title, author_name),
                )

                for index, photo in enumerate(_photos(article), start=1):
                    photo_folder = f"{article_path}/Photos/Photo {photo.photo_number or index}"
                    data = await self._read(photo.file_path)
                    if data is not None:
                        zf.writestr(f"{photo_folder}/{photo.original_file_name}", data)
                    caption = photo.caption or "(No caption provided)"
                    zf.writestr(f"{photo_folder}/Caption.txt", f"Author: {author_name}\nCaption: {caption}")

        logger.info("Exported issue %s with %d articles", issue_id, len(articles))
        return ExportFile(
            filename=f"Volume_{volume_number}_Issue_{issue.issue_number}_Export.zip",
            media_type=ZIP_MIME,
            content=buffer.getvalue(),
        )

    async def wordpress_bundle(
        self,
        volume_id: str,
        issue_ids: list[str],
        include_photos: bool = False,
    ) -> ExportFile:
        """
        Build the JSON bundle consumed by the WordPress importer.

        One JSON file per selected issue, optionally with the photos laid out
        under Photos/V<volume>_I<issue>/<title>/.
        """
        if not volume_id:
            raise ValidationError("Volume ID is required")
        if not issue_ids:
            raise ValidationError("At least one issue must be selected")

        volume = await self.db.get(Volume, volume_id)
        if not volume:
            raise NotFoundError("Volume not found")

        result = await self.db.execute(
            select(Issue).where(Issue.id.in_(issue_ids)).order_by(Issue.issue_number)
        )
        issues = list(result.scalars().all())
        if not issues:
            raise NotFoundError("No issues found")

        base_folder = f"Json_V{volume.volume_number}_{secrets.token_hex(3)}"
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            for issue in issues:
                entries = []
                for article in await self._issue_articles(issue.id):
                    photos = _photos(article)
                    entries.append(
                        {
                            "id": article.id,
                            "title": article.title,
                            "author": author_display_name(article),
                            "role": (article.author.role if article.author else None)
                            or ContributorRole.GUEST_CONTRIBUTOR.value,
                            "volume": str(volume.volume_number),
                            "issue": str(issue.issue_number),
                            "photo": [
                                {
                                    "PhotoName": p.original_file_name or p.file_name,
                                    "Caption": p.caption or "No Caption",
                                }
                                for p in photos
                            ],
                            "content": article.content or "",
                        }
                    )

                    if include_photos:
                        folder = export_filename(article.title)[:50].strip()
                        for photo in photos:
                            data = await self._read(photo.file_path)
                            if data is None:
                                continue
                            zf.writestr(
                                f"{base_folder}/Photos/V{volume.volume_number}_I{issue.issue_number}"
                                f"/{folder}/{photo.original_file_name or photo.file_name}",
                                data,
                            )

                zf.writestr(
                    f"{base_folder}/Json_Volume_{volume.volume_number}_Issue_{issue.issue_number}.json",
                    json.dumps(entries, indent=2),
                )

        numbers = "_".join(str(i.issue_number) for i in issues)
        return ExportFile(
            filename=f"WP_Export_V{volume.volume_number}_I{numbers}.zip",
            media_type=ZIP_MIME,
            content=buffer.getvalue(),
        )

    async def articles_csv(self, **filters) -> ExportFile:
        """CSV of the filtered article list (all pages)."""
        articles, _ = await ArticleService(self.db).list_articles(page=1, limit=10000, **filters)

        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_COLUMNS)
        for a in articles:
            writer.writerow([
                a.id,
                a.title,
                a.author.full_name if a.author else "",
                a.author.email if a.author else "",
                a.article_tier,
                a.internal_status,
                a.volume or "",
                a.issue or "",
                format_cents(a.payment_amount) if a.payment_amount is not None else "",
                "yes" if a.payment_status else "no",
                a.submitted_at.isoformat() if a.submitted_at else "",
            ])

        return ExportFile(
            filename="articles.csv",
            media_type=CSV_MIME,
            content=buf.getvalue().encode("utf-8"),
        )
