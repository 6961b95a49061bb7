"""
Maintenance utilities: duplicate file detection and cleanup, student type backfill.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter
from api.dependencies import get_storage
from api.schemas.utilities import (
    DeleteFilesRequest,
    DeleteFilesResponse,
    DuplicateFileItem,
    DuplicateGroupResponse,
    DuplicateReportResponse,
    StudentTypeUpdateRequest,
    StudentTypeUpdateResponse,
)
from infrastructure.database.connection import get_db
from infrastructure.database.models import Attachment
from services.duplicates import DuplicateFileService
from services.legacy_import import update_student_types

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/utilities", tags=["utilities"])


def _file_item(attachment: Attachment) -> DuplicateFileItem:
    return DuplicateFileItem(
        id=attachment.id,
        article_id=attachment.article_id,
        article_title=attachment.article.title if attachment.article else None,
        file_name=attachment.file_name,
        original_file_name=attachment.original_file_name,
        file_path=attachment.file_path,
        file_size=attachment.file_size,
        attachment_type=attachment.attachment_type,
    )


@router.get("/duplicate-files", response_model=DuplicateReportResponse)
async def find_duplicate_files(
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Group attachments that look like copies: same name, same name with another
    extension, or same size within one article.
    """
    report = await DuplicateFileService(db, storage).find_duplicates()
    return DuplicateReportResponse(
        total_files=report.total_files,
        duplicate_groups=len(report.groups),
        total_duplicates=report.total_duplicates,
        groups=[
            DuplicateGroupResponse(
                key=group.key,
                match_type=group.match_type.value,
                label=group.label,
                files=[_file_item(f) for f in group.files],
            )
            for group in report.groups
        ],
    )


@router.delete("/duplicate-files", response_model=DeleteFilesResponse)
async def delete_duplicate_files(
    request: DeleteFilesRequest,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Delete the selected attachments and their stored files.
    """
    deleted = await DuplicateFileService(db, storage).delete_files(request.attachment_ids)
    await db.commit()
    logger.info("Deleted %d duplicate attachment(s)", deleted)
    return DeleteFilesResponse(deleted=deleted)


@router.post("/update-student-types", response_model=StudentTypeUpdateResponse)
async def update_author_student_types(
    request: StudentTypeUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Set student_type on Student authors from the `role` column of a SharePoint export.
    """
    stats = await update_student_types(db, request.articles)
    await db.commit()
    return StudentTypeUpdateResponse(**asdict(stats))
