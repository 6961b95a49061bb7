"""
Duplicate file finder over all stored attachments.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from adapters.storage import StorageAdapter
from core.domain.duplicates import DuplicateReport, find_duplicate_files
from infrastructure.database.models import Attachment
from services.attachments import AttachmentService

logger = logging.getLogger(__name__)


class DuplicateFileService:
    """Finds and removes duplicate attachments."""

    def __init__(self, db: AsyncSession, storage: StorageAdapter):
        self.db = db
        self.storage = storage

    async def find_duplicates(self) -> DuplicateReport:
        result = await self.db.execute(
            select(Attachment)
            .options(selectinload(Attachment.article))
            .order_by(Attachment.original_file_name, Attachment.created_at)
        )
        report = find_duplicate_files(list(result.scalars().all()))
        logger.info(
            "Duplicate scan: %d files, %d groups, %d duplicates",
            report.total_files,
            len(report.groups),
            report.total_duplicates,
        )
        return report

    async def delete_files(self, attachment_ids: list[str]) -> int:
        return await AttachmentService(self.db, self.storage).delete_attachments(attachment_ids)
