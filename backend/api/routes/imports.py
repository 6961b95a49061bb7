"""
Legacy SharePoint import route.
"""

import logging
import tempfile
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter
from api.dependencies import get_storage
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.utilities import SharePointImportResponse
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from services.legacy_import import IMPORT_MODES, SharePointImportService, extract_export_zip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["import"])


@router.post("/sharepoint", response_model=SharePointImportResponse)
@limiter.limit(get_rate_limit("sharepoint_import"))
async def import_sharepoint(
    request: Request,
    file: UploadFile = File(...),
    mode: str = Form("merge"),
    preview: bool = Form(False),
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Import a zipped SharePoint export (JSON list items plus documents/ and photos/).

    With preview=true nothing is written and the expected counts are returned.
    """
    if mode not in IMPORT_MODES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid mode: {mode}")

    limit = settings.max_backup_size_mb * 1024 * 1024
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Import exceeds {settings.max_backup_size_mb} MB",
        )

    service = SharePointImportService(db, storage)
    with tempfile.TemporaryDirectory(prefix="sharepoint-") as tmp:
        export = extract_export_zip(content, Path(tmp))

        if preview:
            return SharePointImportResponse(
                preview=True,
                stats=await service.preview(export, mode),
                message=f"{len(export.records)} record(s) found",
            )

        stats = await service.import_export(export, mode)
        await db.commit()

    logger.info(
        "SharePoint import: %d article(s) imported, %d error(s)",
        stats.articles["imported"],
        len(stats.errors),
    )
    return SharePointImportResponse(
        stats=stats.to_dict(),
        message=f"Imported {stats.articles['imported']} article(s)",
    )
