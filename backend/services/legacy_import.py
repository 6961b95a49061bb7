"""
SharePoint legacy import.

Reads a SharePoint list export (a JSON array of list items, plus optional
documents/<FileLeafRef>/ and photos/<FileLeafRef>/ folders) and loads it
into authors, articles and attachments.

The export may be given as a folder on disk (CLI) or as a ZIP upload (API).
"""

import io
import json
import logging
import re
import unicodedata
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter, get_mime_type
from core.exceptions import ValidationError
from infrastructure.database.models import (
    Article,
    ArticleMultimediaType,
    ArticleTier,
    Attachment,
    AttachmentType,
    Author,
    AuthorType,
    AutomationStatus,
    ContributorRole,
    InternalStatus,
    MultimediaType,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "Draft": InternalStatus.DRAFT.value,
    "Accepted": InternalStatus.APPROVED.value,
    "Rejected": InternalStatus.ARCHIVED.value,
    "Backlog": InternalStatus.PENDING_REVIEW.value,
    "In Progress": InternalStatus.IN_REVIEW.value,
    **{status.value: status.value for status in InternalStatus},
}

STUDENT_TYPE_MAP = {
    "Undergrad": "Undergrad",
    "Grad": "Grad",
    "Graduate": "Grad",
    "Alumni": "Alumni",
    "Faculty": "Other",
    "Staff": "Other",
    "Other": "Other",
}

# Roles that name a student type; Faculty and Staff rows carry no student type
STUDENT_ROLE_MAP = {role: value for role, value in STUDENT_TYPE_MAP.items() if role not in ("Faculty", "Staff")}

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic"}
DOCUMENT_EXTENSIONS = {".docx", ".doc", ".pdf", ".txt"}

IMPORTABLE_MULTIMEDIA = {m.value for m in MultimediaType} - {MultimediaType.OTHER.value}

IMPORT_MODES = ("merge", "replace")

_QUOTES = str.maketrans(
    {
        "‘": "'", "’": "'", "‚": "'", "‛": "'", "`": "'", "´": "'",
        "“": '"', "”": '"', "„": '"', "‟": '"',
    }
)


def sanitize_import_filename(filename: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9._-]", "_", filename)
    return re.sub(r"_{2,}", "_", name)[:255]


def normalize_folder_name(name: str) -> str:
    """Fold apostrophe and quote variants and drop non-printable-ASCII characters."""
    name = unicodedata.normalize("NFKD", name).translate(_QUOTES)
    return re.sub(r"[^\x20-\x7e]", "", name).strip()


def _fuzzy(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "", name).lower()


def find_matching_folder(base_dir: Optional[Path], target: Optional[str]) -> Optional[Path]:
    """Exact name first, then normalized, then alphanumerics only (case-insensitive)."""
    if base_dir is None or not target or not base_dir.is_dir():
        return None
    folders = [p for p in base_dir.iterdir() if p.is_dir()]

    for folder in folders:
        if folder.name == target:
            return folder
    normalized = normalize_folder_name(target)
    for folder in folders:
        if normalize_folder_name(folder.name) == normalized:
            return folder
    fuzzy = _fuzzy(target)
    for folder in folders:
        if _fuzzy(folder.name) == fuzzy:
            return folder
    return None


def _list_files(folder: Optional[Path], extensions: set[str]) -> list[Path]:
    if folder is None:
        return []
    return sorted(
        p for p in folder.iterdir()
        if p.is_file() and not p.name.startswith(".") and p.suffix.lower() in extensions
    )


def record_email(record: dict) -> str:
    """Contact email of a list item, lowercased; empty when missing."""
    return str(record.get("Contact_x0020_Email") or record.get("ContactEmail") or "").strip().lower()


def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    match = re.match(r"\s*(-?\d+)", str(value))
    return int(match.group(1)) if match else None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _find_subdir(root: Path, name: str) -> Optional[Path]:
    for child in root.iterdir():
        if child.is_dir() and child.name.lower() == name:
            return child
    return None


@dataclass
class SharePointExport:
    """Parsed export: list items plus the folders holding their files."""

    records: list[dict]
    documents_dir: Optional[Path] = None
    photos_dir: Optional[Path] = None


def load_export_folder(folder: Path) -> SharePointExport:
    """Read the first *.json file in a folder and locate documents/ and photos/."""
    if not folder.is_dir():
        raise ValidationError(f"Folder not found: {folder}")
    json_files = sorted(folder.glob("*.json"))
    if not json_files:
        raise ValidationError("No JSON file found in folder")
    try:
        records = json.loads(json_files[0].read_text(encoding="utf-8"))
    except ValueError as e:
        raise ValidationError(f"Invalid JSON in {json_files[0].name}: {e}")
    if not isinstance(records, list):
        raise ValidationError("Invalid JSON format - expected array of articles")
    return SharePointExport(
        records=records,
        documents_dir=_find_subdir(folder, "documents"),
        photos_dir=_find_subdir(folder, "photos"),
    )


def extract_export_zip(content: bytes, target: Path) -> SharePointExport:
    """
    Unpack an uploaded export into target and load it.

    The export's JSON may sit under a root folder; that prefix is stripped so
    documents/ and photos/ end up directly under target.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(content))
    except zipfile.BadZipFile:
        raise ValidationError("Uploaded file is not a ZIP archive")

    with archive:
        names = [n for n in archive.namelist() if not n.startswith("__MACOSX")]
        json_name = next((n for n in names if n.endswith(".json")), None)
        if not json_name:
            raise ValidationError("No JSON file found in ZIP")

        parent = PurePosixPath(json_name).parent
        prefix = "" if str(parent) == "." else f"{parent}/"

        for name in names:
            if name.endswith("/"):
                continue
            relative = name[len(prefix):] if prefix and name.startswith(prefix) else name
            destination = (target / relative).resolve()
            if target.resolve() not in destination.parents:
                logger.warning("Skipping unsafe path in import ZIP: %s", name)
                continue
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(archive.read(name))

    return load_export_folder(target)


@dataclass
class ImportStats:
    authors: dict = field(default_factory=lambda: {"imported": 0, "skipped": 0})
    articles: dict = field(default_factory=lambda: {"imported": 0, "skipped": 0, "updated": 0})
    attachments: dict = field(default_factory=lambda: {"imported": 0, "skipped": 0})
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "authors": self.authors,
            "articles": self.articles,
            "attachments": self.attachments,
            "errors": self.errors,
        }

    def merge(self, other: "ImportStats") -> None:
        for mine, theirs in (
            (self.authors, other.authors),
            (self.articles, other.articles),
            (self.attachments, other.attachments),
        ):
            for key, count in theirs.items():
                mine[key] += count
        self.errors.extend(other.errors)


class SharePointImportService:
    """Loads a SharePointExport into the database and storage."""

    def __init__(self, db: AsyncSession, storage: StorageAdapter):
        self.db = db
        self.storage = storage

    async def _find_existing_article(self, record: dict, email: str) -> Optional[Article]:
        result = await self.db.execute(
            select(Article).where(Article.form_response_id == f"sp-{record.get('Id')}").limit(1)
        )
        article = result.scalar_one_or_none()
        if article:
            return article

        title = str(record.get("Title") or record.get("FileLeafRef") or "").strip().lower()
        if not title:
            return None
        result = await self.db.execute(
            select(Article)
            .join(Author, Article.author_id == Author.id)
            .where(func.lower(Article.title) == title, func.lower(Author.email) == email)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _author_exists(self, email: str) -> Optional[Author]:
        result = await self.db.execute(select(Author).where(func.lower(Author.email) == email))
        return result.scalar_one_or_none()

    async def preview(self, export: SharePointExport, mode: str = "merge") -> dict:
        """Counts of what an import would do, without writing anything."""
        stats = {
            "articles": {"new": 0, "update": 0, "skip": 0},
            "authors": {"new": 0, "existing": 0},
            "files": {"documents": 0, "photos": 0},
            "article_previews": [],
        }
        seen_emails: set[str] = set()

        for record in export.records:
            email = record_email(record)
            if not email:
                stats["articles"]["skip"] += 1
                continue

            if email not in seen_emails:
                seen_emails.add(email)
                key = "existing" if await self._author_exists(email) else "new"
                stats["authors"][key] += 1

            if await self._find_existing_article(record, email):
                status = "skip" if mode == "merge" else "update"
            else:
                status = "new"
            stats["articles"][status] += 1

            folder_name = record.get("FileLeafRef")
            documents = _list_files(find_matching_folder(export.documents_dir, folder_name), DOCUMENT_EXTENSIONS)
            photos = _list_files(find_matching_folder(export.photos_dir, folder_name), IMAGE_EXTENSIONS)
            stats["files"]["documents"] += len(documents)
            stats["files"]["photos"] += len(photos)

            name = f"{record.get('Given_x0020_Name') or ''} {record.get('Surname') or ''}".strip()
            stats["article_previews"].append(
                {
                    "title": record.get("Title") or folder_name,
                    "author": name or "Unknown",
                    "email": email,
                    "status": status,
                    "documents": len(documents),
                    "photos": len(photos),
                }
            )
        return stats

    async def import_export(self, export: SharePointExport, mode: str = "merge") -> ImportStats:
        """
        Import every record.

        merge skips articles that already exist; replace overwrites their
        fields. Each record runs in its own savepoint: a record that fails
        for any reason is rolled back alone, reported in stats.errors and
        skipped.
        """
        if mode not in IMPORT_MODES:
            raise ValidationError(f"Invalid mode: {mode}")

        stats = ImportStats()
        author_cache: dict[str, str] = {}

        for record in export.records:
            title = str(record.get("Title") or record.get("FileLeafRef") or "")
            email = record_email(record)
            if not email:
                stats.errors.append(f'Skipping "{title}" - no email address')
                continue

            record_stats = ImportStats()
            try:
                async with self.db.begin_nested():
                    author_id = await self._import_record(
                        record, email, mode, export, author_cache.get(email), record_stats
                    )
            except Exception as e:
                logger.warning("SharePoint record %r failed: %s", title, e)
                stats.errors.append(f'Error importing "{title}": {e}')
                continue

            if author_id:
                author_cache[email] = author_id
            stats.merge(record_stats)

        logger.info(
            "SharePoint import (%s): %d articles imported, %d updated, %d skipped, %d errors",
            mode,
            stats.articles["imported"],
            stats.articles["updated"],
            stats.articles["skipped"],
            len(stats.errors),
        )
        return stats

    async def _import_record(
        self,
        record: dict,
        email: str,
        mode: str,
        export: SharePointExport,
        author_id: Optional[str],
        stats: ImportStats,
    ) -> Optional[str]:
        """Import one record. Returns the author id, or None when the article was skipped."""
        values = self._article_values(record)

        existing = await self._find_existing_article(record, email)
        if existing and mode == "merge":
            stats.articles["skipped"] += 1
            return None

        if not author_id:
            author_id = await self._get_or_create_author(record, email, stats)
        values["author_id"] = author_id

        if existing:
            for key, value in values.items():
                setattr(existing, key, value)
            article = existing
            stats.articles["updated"] += 1
        else:
            article = Article(**values)
            self.db.add(article)
            stats.articles["imported"] += 1
        await self.db.flush()

        await self._import_files(record, article, export, stats)
        await self._import_multimedia(record, article)
        return author_id

    @staticmethod
    def _article_values(record: dict) -> dict:
        title = str(record.get("Title") or record.get("FileLeafRef") or "").strip()
        if not title:
            raise ValueError("record has no title")
        tier = record.get("Article_x0020_Tier")
        if tier not in {t.value for t in ArticleTier}:
            tier = ArticleTier.TIER_1.value
        total = record.get("Total_x0020_Payment")
        return {
            "title": title,
            "article_tier": tier,
            "internal_status": STATUS_MAP.get(
                record.get("Internal_x0020_Status") or "", InternalStatus.PENDING_REVIEW.value
            ),
            "automation_status": AutomationStatus.COMPLETED.value,
            "prefers_anonymity": bool(record.get("Prefers_x0020_Anonymity")),
            "payment_status": bool(record.get("Payment_x0020_Status")),
            "payment_amount": round(float(total) * 100) if total else None,
            "payment_is_manual": total is not None and float(total) > 0,
            "submitted_at": _parse_datetime(record.get("Created")),
            "volume": _parse_int(record.get("Volume")),
            "issue": _parse_int(record.get("Issue")),
            "content": record.get("Article_x0020_Content1") or None,
            "form_response_id": f"sp-{record.get('Id')}",
        }

    async def _get_or_create_author(self, record: dict, email: str, stats: ImportStats) -> str:
        author = await self._author_exists(email)
        if author:
            stats.authors["skipped"] += 1
            return author.id

        author = Author(
            given_name=record.get("Given_x0020_Name") or "Unknown",
            surname=record.get("Surname") or "",
            email=email,
            role=ContributorRole.GUEST_CONTRIBUTOR.value,
            author_type=AuthorType.STUDENT.value,
            student_type=STUDENT_TYPE_MAP.get(record.get("role") or ""),
            auto_deposit_available=bool(record.get("Autodeposit")),
            etransfer_email=record.get("e_x002d_Transfer_x0020_Email") or None,
        )
        self.db.add(author)
        await self.db.flush()
        stats.authors["imported"] += 1
        return author.id

    async def _import_files(
        self,
        record: dict,
        article: Article,
        export: SharePointExport,
        stats: ImportStats,
    ) -> None:
        folder_name = record.get("FileLeafRef")

        for path in _list_files(find_matching_folder(export.documents_dir, folder_name), DOCUMENT_EXTENSIONS):
            stored = await self._store(article, path, "documents", AttachmentType.WORD_DOCUMENT.value)
            stats.attachments["imported" if stored else "skipped"] += 1

        captions = {
            image.get("name"): (image.get("metadata") or {}).get("Caption")
            for image in record.get("_images") or []
        }
        photos = _list_files(find_matching_folder(export.photos_dir, folder_name), IMAGE_EXTENSIONS)
        for number, path in enumerate(photos, start=1):
            stored = await self._store(
                article,
                path,
                "photos",
                AttachmentType.PHOTO.value,
                caption=captions.get(path.name),
                photo_number=number,
            )
            stats.attachments["imported" if stored else "skipped"] += 1

    async def _store(
        self,
        article: Article,
        path: Path,
        subdir: str,
        attachment_type: str,
        caption: Optional[str] = None,
        photo_number: Optional[int] = None,
    ) -> bool:
        """Store one file as an attachment. Returns False when the article already has it."""
        data = path.read_bytes()
        name = sanitize_import_filename(path.name)
        destination = f"{subdir}/{article.id}/{name}"
        already = await self.db.scalar(
            select(Attachment.id).where(
                Attachment.article_id == article.id, Attachment.file_path == destination
            )
        )
        if already:
            return False
        await self.storage.save_file(destination, data)
        self.db.add(
            Attachment(
                article_id=article.id,
                attachment_type=attachment_type,
                file_name=name,
                original_file_name=path.name,
                file_path=destination,
                file_size=len(data),
                mime_type=get_mime_type(path.name),
                caption=caption,
                photo_number=photo_number,
            )
        )
        await self.db.flush()
        return True

    async def _import_multimedia(self, record: dict, article: Article) -> None:
        raw = record.get("Multimedia_x0020_Types")
        if not isinstance(raw, str):
            return
        wanted = {t.strip() for t in raw.split(",")} & IMPORTABLE_MULTIMEDIA
        existing = set(
            (
                await self.db.scalars(
                    select(ArticleMultimediaType.multimedia_type).where(
                        ArticleMultimediaType.article_id == article.id
                    )
                )
            ).all()
        )
        for media in sorted(wanted - existing):
            self.db.add(ArticleMultimediaType(article_id=article.id, multimedia_type=media))
        await self.db.flush()


@dataclass
class StudentTypeUpdateStats:
    updated: int = 0
    skipped: int = 0
    not_found: int = 0
    errors: list[str] = field(default_factory=list)
    details: list[str] = field(default_factory=list)


async def update_student_types(db: AsyncSession, records: list[dict]) -> StudentTypeUpdateStats:
    """
    Backfill student_type on existing Student authors from a SharePoint export.

    Authors are matched by contact email; the last role seen for an email
    wins. Non-student authors, unknown roles and unchanged values are skipped.
    """
    roles: dict[str, str] = {}
    for record in records:
        email = record_email(record)
        role = record.get("role")
        if email and role:
            roles[email] = str(role)

    stats = StudentTypeUpdateStats()
    for email, role in roles.items():
        try:
            async with db.begin_nested():
                author = await db.scalar(select(Author).where(func.lower(Author.email) == email))
                if author is None:
                    stats.not_found += 1
                    continue
                if author.author_type != AuthorType.STUDENT.value:
                    stats.skipped += 1
                    stats.details.append(f"Skipped {email} - not a Student type ({author.author_type})")
                    continue

                student_type = STUDENT_ROLE_MAP.get(role)
                if student_type is None:
                    stats.skipped += 1
                    stats.details.append(f'Skipped {email} - unknown role "{role}"')
                    continue
                if author.student_type == student_type:
                    stats.skipped += 1
                    continue

                previous = author.student_type or "none"
                author.student_type = student_type
                await db.flush()
        except Exception as e:
            logger.warning("Student type update failed for %s: %s", email, e)
            stats.errors.append(f"Failed to update {email}: {e}")
            continue

        stats.updated += 1
        stats.details.append(f"Updated {email}: {previous} -> {student_type}")

    logger.info(
        "Student types: %d updated, %d skipped, %d not found",
        stats.updated,
        stats.skipped,
        stats.not_found,
    )
    return stats
