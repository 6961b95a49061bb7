"""
Attachment routes: download, caption, delete and Word conversion.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.documents import ConversionFormat
from adapters.storage import StorageAdapter, get_mime_type
from api.dependencies import get_storage
from api.schemas.articles import AttachmentResponse, CaptionUpdateRequest
from api.utils import content_disposition
from infrastructure.database.connection import get_db
from services.attachments import AttachmentService

router = APIRouter(prefix="/attachments", tags=["attachments"])


@router.get("/{attachment_id}", response_model=AttachmentResponse)
async def get_attachment(
    attachment_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    return await AttachmentService(db, storage).get_attachment(attachment_id)


@router.get("/{attachment_id}/download")
async def download_attachment(
    attachment_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    attachment, data = await AttachmentService(db, storage).read_attachment(attachment_id)
    return Response(
        content=data,
        media_type=attachment.mime_type or get_mime_type(attachment.file_name),
        headers={
            "Content-Disposition": content_disposition(attachment.original_file_name or attachment.file_name),
        },
    )


@router.get("/{attachment_id}/convert", response_class=PlainTextResponse)
async def convert_attachment(
    attachment_id: str,
    format: ConversionFormat = Query(ConversionFormat.MARKDOWN),
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Convert a stored Word document to Markdown, HTML or plain text.
    """
    text = await AttachmentService(db, storage).convert_attachment(attachment_id, format)
    media_type = "text/html" if format == ConversionFormat.HTML else "text/plain"
    return PlainTextResponse(text, media_type=media_type)


@router.patch("/{attachment_id}/caption", response_model=AttachmentResponse)
async def update_caption(
    attachment_id: str,
    request: CaptionUpdateRequest,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    attachment = await AttachmentService(db, storage).update_caption(attachment_id, request.caption)
    await db.commit()
    return attachment


@router.delete("/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Delete an attachment and its stored file.
    """
    await AttachmentService(db, storage).delete_attachment(attachment_id)
    await db.commit()
