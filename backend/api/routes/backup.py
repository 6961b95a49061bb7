"""
Backup export and restore routes.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter
from api.dependencies import get_storage
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.utilities import BackupImportResponse
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from services.backup import RESTORE_MODES, RESTORE_TYPES, BackupService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/backup", tags=["backup"])


@router.get("/export")
@limiter.limit(get_rate_limit("backup_export"))
async def export_backup(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Download the whole database and every stored file as one ZIP.
    """
    filename, content = await BackupService(db, storage).export_backup()
    return StreamingResponse(
        iter([content]),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=BackupImportResponse)
@limiter.limit(get_rate_limit("backup_import"))
async def import_backup(
    request: Request,
    backup: UploadFile = File(...),
    mode: str = Form("merge"),
    restore_type: str = Form("both", alias="type"),
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Restore a backup ZIP.

    merge keeps existing rows and skips records whose id already exists;
    replace clears all editorial data first.
    """
    if mode not in RESTORE_MODES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid mode: {mode}")
    if restore_type not in RESTORE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid restore type: {restore_type}",
        )

    limit = settings.max_backup_size_mb * 1024 * 1024
    content = await backup.read(limit + 1)
    if len(content) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Backup exceeds {settings.max_backup_size_mb} MB",
        )

    result = await BackupService(db, storage).import_backup(content, mode, restore_type)
    await db.commit()
    logger.info("Backup %s restored in %s mode", backup.filename, mode)
    return BackupImportResponse(**result)
