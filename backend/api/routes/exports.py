"""
Export routes: Word documents, issue packages, WordPress bundles and CSV.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter
from api.dependencies import get_storage
from api.schemas.utilities import WordPressExportRequest
from api.utils import content_disposition
from infrastructure.database.connection import get_db
from services.exports import ExportFile, ExportService

router = APIRouter(prefix="/exports", tags=["exports"])


def download_response(export: ExportFile) -> StreamingResponse:
    return StreamingResponse(
        iter([export.content]),
        media_type=export.media_type,
        headers={"Content-Disposition": content_disposition(export.filename)},
    )


@router.get("/articles/{article_id}/docx")
async def export_article_docx(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    The article content as a Word document.
    """
    return download_response(await ExportService(db, storage).article_docx(article_id))


@router.get("/issues/{issue_id}/zip")
async def export_issue_zip(
    issue_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Every article in the issue as Word documents with their photos and captions.
    """
    return download_response(await ExportService(db, storage).issue_zip(issue_id))


@router.post("/wordpress")
async def export_wordpress_bundle(
    request: WordPressExportRequest,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    JSON files per issue for the WordPress importer, optionally with photos.
    """
    export = await ExportService(db, storage).wordpress_bundle(
        request.volume_id, request.issue_ids, request.include_photos
    )
    return download_response(export)


@router.get("/articles.csv")
async def export_articles_csv(
    status_filter: Optional[str] = Query(None, alias="status"),
    tier: Optional[str] = None,
    author_id: Optional[str] = None,
    issue_id: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=255),
    sort_by: str = "submitted_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    The filtered article list as CSV.
    """
    export = await ExportService(db, storage).articles_csv(
        status=status_filter,
        tier=tier,
        author_id=author_id,
        issue_id=issue_id,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return download_response(export)
