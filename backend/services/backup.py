"""
Backup service.

Exports the whole database plus stored attachment files into a single ZIP
(manifest.json + files/<path>) and restores such archives in merge or
replace mode.
"""

import io
import json
import logging
import zipfile
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import Date, DateTime, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter
from core.exceptions import StorageError, ValidationError
from infrastructure.database.models import (
    Article,
    ArticleMultimediaType,
    ArticleNote,
    Attachment,
    Author,
    Issue,
    PaymentRateConfig,
    SavedArticleView,
    StatusHistory,
    Volume,
)

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
MANIFEST_NAME = "manifest.json"
FILES_PREFIX = "files/"

# Manifest key -> (model, stats key), in insert (dependency) order
ENTITIES = (
    ("authors", Author, "authors"),
    ("volumes", Volume, "volumes"),
    ("issues", Issue, "issues"),
    ("articles", Article, "articles"),
    ("attachments", Attachment, "attachments"),
    ("articleMultimediaTypes", ArticleMultimediaType, "multimedia_types"),
    ("articleNotes", ArticleNote, "notes"),
    ("statusHistory", StatusHistory, "status_history"),
    ("savedViews", SavedArticleView, "saved_views"),
)

RESTORE_MODES = ("merge", "replace")
RESTORE_TYPES = ("both", "database", "files")


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def row_to_dict(row) -> dict:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def dict_to_row(model, data: dict):
    """Build a model instance from manifest data, parsing date columns and ignoring unknown keys."""
    values = {}
    for column in model.__table__.columns:
        if column.key not in data:
            continue
        value = data[column.key]
        if isinstance(value, str):
            if isinstance(column.type, DateTime):
                value = datetime.fromisoformat(value)
            elif isinstance(column.type, Date):
                value = date.fromisoformat(value[:10])
        values[column.key] = value
    return model(**values)


def backup_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"otemanager-backup-{today.isoformat()}.zip"


class BackupService:
    """Full export and restore."""

    def __init__(self, db: AsyncSession, storage: StorageAdapter):
        self.db = db
        self.storage = storage

    async def _all(self, model) -> list:
        result = await self.db.execute(select(model))
        return list(result.scalars().all())

    async def export_backup(self) -> tuple[str, bytes]:
        """
        Build a backup archive.

        Returns:
            (filename, zip bytes)
        """
        data: dict[str, Any] = {}
        for key, model, _ in ENTITIES:
            data[key] = [row_to_dict(row) for row in await self._all(model)]

        config = (
            await self.db.execute(select(PaymentRateConfig).order_by(PaymentRateConfig.created_at).limit(1))
        ).scalar_one_or_none()
        data["paymentConfig"] = row_to_dict(config) if config else None

        manifest = {
            "exportVersion": EXPORT_VERSION,
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "counts": {
                "articles": len(data["articles"]),
                "authors": len(data["authors"]),
                "volumes": len(data["volumes"]),
                "issues": len(data["issues"]),
                "attachments": len(data["attachments"]),
            },
            "data": data,
        }

        buffer = io.BytesIO()
        files_added = 0
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            zf.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2, default=_json_default))
            for attachment in data["attachments"]:
                path = attachment["file_path"]
                try:
                    content = await self.storage.get_file(path)
                except StorageError as e:
                    logger.warning("Could not include file %s: %s", path, e)
                    continue
                if content is None:
                    logger.warning("Could not include file %s: not found", path)
                    continue
                zf.writestr(f"{FILES_PREFIX}{path}", content)
                files_added += 1

        logger.info("Backup exported: %s, %d files", manifest["counts"], files_added)
        return backup_filename(), buffer.getvalue()

    @staticmethod
    def read_manifest(archive: zipfile.ZipFile) -> dict:
        try:
            raw = archive.read(MANIFEST_NAME)
        except KeyError:
            raise ValidationError("Invalid backup: manifest.json not found")
        try:
            manifest = json.loads(raw)
        except ValueError:
            raise ValidationError("Invalid backup: malformed manifest")
        if not isinstance(manifest, dict) or not manifest.get("exportVersion") or not isinstance(
            manifest.get("data"), dict
        ):
            raise ValidationError("Invalid backup: malformed manifest")
        return manifest

    async def _clear_database(self) -> None:
        # Reverse dependency order
        for _, model, _ in reversed(ENTITIES):
            await self.db.execute(delete(model))
        await self.db.execute(delete(PaymentRateConfig))
        await self.db.flush()
        logger.warning("Backup restore in replace mode cleared all editorial data")

    async def _exists(self, model, record_id: Any) -> bool:
        return (await self.db.scalar(select(model.id).where(model.id == record_id))) is not None

    async def import_backup(
        self,
        content: bytes,
        mode: str = "merge",
        restore_type: str = "both",
    ) -> dict:
        """
        Restore a backup archive.

        Args:
            content: ZIP bytes produced by export_backup
            mode: "merge" keeps existing rows; "replace" clears the database first
            restore_type: "both", "database" or "files"

        Returns:
            Per-entity imported/skipped counts plus files_restored and backup info
        """
        if mode not in RESTORE_MODES:
            raise ValidationError(f"Invalid mode: {mode}")
        if restore_type not in RESTORE_TYPES:
            raise ValidationError(f"Invalid restore type: {restore_type}")

        try:
            archive = zipfile.ZipFile(io.BytesIO(content))
        except zipfile.BadZipFile:
            raise ValidationError("Invalid backup: not a ZIP archive")

        with archive:
            manifest = self.read_manifest(archive)
            data = manifest["data"]

            stats: dict[str, dict[str, int]] = {
                stats_key: {"imported": 0, "skipped": 0} for _, _, stats_key in ENTITIES
            }
            stats["attachments"]["files_restored"] = 0

            import_database = restore_type in ("both", "database") and "authors" in data
            import_files = restore_type in ("both", "files")

            if import_database:
                if mode == "replace":
                    await self._clear_database()

                for key, model, stats_key in ENTITIES:
                    for record in data.get(key) or []:
                        if await self._exists(model, record.get("id")):
                            stats[stats_key]["skipped"] += 1
                            continue
                        self.db.add(dict_to_row(model, record))
                        stats[stats_key]["imported"] += 1
                    await self.db.flush()

                config = data.get("paymentConfig")
                if config:
                    existing = await self.db.scalar(select(PaymentRateConfig.id).limit(1))
                    if existing is None:
                        self.db.add(dict_to_row(PaymentRateConfig, config))
                        await self.db.flush()

            if import_files:
                names = set(archive.namelist())
                for attachment in data.get("attachments") or []:
                    path = attachment.get("file_path")
                    if not path or f"{FILES_PREFIX}{path}" not in names:
                        continue
                    await self.storage.save_file(path, archive.read(f"{FILES_PREFIX}{path}"))
                    stats["attachments"]["files_restored"] += 1

        logger.info("Backup restored (mode=%s, type=%s): %s", mode, restore_type, stats)
        return {
            "stats": stats,
            "backup_info": {
                "exported_at": manifest.get("exportedAt"),
                "version": manifest.get("exportVersion"),
            },
        }
