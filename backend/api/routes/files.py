"""
Stored file serving and ad-hoc Word conversion.
"""

import logging
from pathlib import PurePosixPath

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import PlainTextResponse, Response

from adapters.documents import ConversionFormat, convert_document
from adapters.storage import StorageAdapter, get_mime_type
from adapters.storage.file_storage import normalize_storage_path
from api.dependencies import get_storage
from api.middleware.rate_limit import get_rate_limit, limiter
from core.exceptions import StorageError
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])

# Scripts embedded in stored files never run in the admin origin
FILE_HEADERS = {
    "Cache-Control": "private, max-age=3600",
    "Content-Security-Policy": "default-src 'none'",
}

# Served as downloads rather than rendered inline
ACTIVE_CONTENT_TYPES = {"image/svg+xml"}


@router.get("/files/{path:path}")
async def serve_file(path: str, storage: StorageAdapter = Depends(get_storage)):
    """
    Serve a stored attachment by its storage path.
    """
    try:
        data = await storage.get_file(normalize_storage_path(path))
    except StorageError as e:
        logger.warning("Failed to read %s: %s", path, e)
        data = None
    if data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    media_type = get_mime_type(path)
    headers = dict(FILE_HEADERS)
    if media_type in ACTIVE_CONTENT_TYPES:
        headers["Content-Disposition"] = f'attachment; filename="{PurePosixPath(path).name}"'

    return Response(content=data, media_type=media_type, headers=headers)


@router.post("/convert/docx", response_class=PlainTextResponse)
@limiter.limit(get_rate_limit("upload"))
async def convert_docx(
    request: Request,
    file: UploadFile = File(...),
    format: ConversionFormat = Query(ConversionFormat.MARKDOWN),
):
    """
    Convert an uploaded Word document without storing it.
    """
    data = await file.read(settings.max_upload_size_bytes + 1)
    if len(data) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.max_upload_size_mb} MB",
        )
    if not (file.filename or "").lower().endswith(".docx"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only .docx files can be converted",
        )

    text = convert_document(data, format)
    media_type = "text/html" if format == ConversionFormat.HTML else "text/plain"
    return PlainTextResponse(text, media_type=media_type)
