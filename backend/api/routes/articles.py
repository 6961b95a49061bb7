"""
Article API routes: CRUD, status workflow, notes, attachments and payments.
"""

import logging
import math
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter
from api.dependencies import get_storage
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.articles import (
    ArticleCreateRequest,
    ArticleListItem,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdateRequest,
    AttachmentResponse,
    BulkStatusRequest,
    BulkStatusResponse,
    ConvertRequest,
    DuplicateArticleGroup,
    NoteCreateRequest,
    NoteResponse,
    StatusHistoryResponse,
    StatusUpdateRequest,
)
from api.schemas.payments import (
    BonusFlagsRequest,
    CalculatePaymentRequest,
    ManualPaymentRequest,
    MarkPaidRequest,
    PaymentCalculationResponse,
)
from core.domain.duplicates import article_duplicate_key
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from services.articles import MANUAL_ENTRY, ArticleService
from services.attachments import AttachmentService
from services.payments import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])


async def read_upload(file: UploadFile) -> bytes:
    """Read an upload, stopping one byte past the size cap so oversize files fail fast."""
    return await file.read(settings.max_upload_size_bytes + 1)


# ============================================================================
# Articles
# ============================================================================


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    status_filter: Optional[str] = Query(None, alias="status"),
    tier: Optional[str] = None,
    author_id: Optional[str] = None,
    issue_id: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=255),
    sort_by: str = "submitted_at",
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """
    List articles with filters and pagination.
    """
    articles, total = await ArticleService(db).list_articles(
        status=status_filter,
        tier=tier,
        author_id=author_id,
        issue_id=issue_id,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=page_size,
    )
    return ArticleListResponse(
        items=[ArticleListItem.model_validate(a) for a in articles],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    request: ArticleCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an article manually. The article starts as a Draft.
    """
    article = await ArticleService(db).create_article(
        title=request.title,
        article_tier=request.article_tier.value,
        author_id=request.author_id,
        author_given_name=request.author_given_name,
        author_surname=request.author_surname,
        author_email=request.author_email,
        content=request.content,
        prefers_anonymity=request.prefers_anonymity,
        issue_id=request.issue_id,
        multimedia_types=[m.value for m in request.multimedia_types],
        changed_by=request.changed_by or MANUAL_ENTRY,
    )
    await db.commit()
    return ArticleResponse.model_validate(article)


@router.get("/duplicates", response_model=list[DuplicateArticleGroup])
async def find_duplicate_articles(db: AsyncSession = Depends(get_db)):
    """
    Articles that share a title and author email.
    """
    groups = await ArticleService(db).find_duplicate_articles()
    return [
        DuplicateArticleGroup(
            key=article_duplicate_key(group[0].title, group[0].author.email if group[0].author else None),
            articles=[ArticleListItem.model_validate(a) for a in group],
        )
        for group in groups
    ]


@router.post("/bulk-status", response_model=BulkStatusResponse)
async def bulk_update_status(
    body: BulkStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Move several articles to one status. Unknown IDs are reported, not fatal.
    """
    result = await ArticleService(db).bulk_update_status(
        body.article_ids, body.status.value, body.changed_by
    )
    await db.commit()
    return BulkStatusResponse(**result)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: str, db: AsyncSession = Depends(get_db)):
    """
    Get an article with its author, attachments, notes and history.
    """
    return ArticleResponse.model_validate(await ArticleService(db).get_article(article_id))


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    request: ArticleUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Update article fields. Only the fields sent are changed.
    """
    service = ArticleService(db)
    fields = request.model_dump(exclude_unset=True)
    multimedia_types = fields.pop("multimedia_types", None)
    if "article_tier" in fields and fields["article_tier"] is not None:
        fields["article_tier"] = request.article_tier.value

    article = await service.update_article(article_id, **fields)
    if multimedia_types is not None:
        article = await service.set_multimedia_types(
            article_id, [m.value for m in request.multimedia_types]
        )
    await db.commit()
    return ArticleResponse.model_validate(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Delete an article, its related rows and its stored files.
    """
    await ArticleService(db, storage).delete_article(article_id)
    await db.commit()


# ============================================================================
# Status workflow
# ============================================================================


@router.put("/{article_id}/status", response_model=ArticleResponse)
async def update_status(
    article_id: str,
    request: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Change the editorial status and record it in the status history.
    """
    article = await ArticleService(db).update_status(
        article_id, request.status.value, request.changed_by, request.notes
    )
    await db.commit()
    return ArticleResponse.model_validate(article)


@router.get("/{article_id}/history", response_model=list[StatusHistoryResponse])
async def get_status_history(article_id: str, db: AsyncSession = Depends(get_db)):
    """
    Status transitions, newest first.
    """
    return await ArticleService(db).list_status_history(article_id)


# ============================================================================
# Notes
# ============================================================================


@router.get("/{article_id}/notes", response_model=list[NoteResponse])
async def list_notes(article_id: str, db: AsyncSession = Depends(get_db)):
    return await ArticleService(db).list_notes(article_id)


@router.post("/{article_id}/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def add_note(
    article_id: str,
    request: NoteCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    note = await ArticleService(db).add_note(article_id, request.content, request.created_by)
    await db.commit()
    return note


@router.delete("/{article_id}/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(article_id: str, note_id: str, db: AsyncSession = Depends(get_db)):
    await ArticleService(db).delete_note(article_id, note_id)
    await db.commit()


# ============================================================================
# Attachments
# ============================================================================


@router.get("/{article_id}/attachments", response_model=list[AttachmentResponse])
async def list_attachments(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    await ArticleService(db).get_article(article_id)
    return await AttachmentService(db, storage).list_attachments(article_id)


@router.post(
    "/{article_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(get_rate_limit("upload"))
async def upload_attachment(
    request: Request,
    article_id: str,
    file: UploadFile = File(...),
    kind: Literal["document", "photo"] = Form("document"),
    caption: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Upload a Word document or a photo for an article.
    """
    attachment = await AttachmentService(db, storage).upload_attachment(
        article_id=article_id,
        data=await read_upload(file),
        filename=file.filename or "upload",
        content_type=file.content_type,
        kind=kind,
        caption=caption,
    )
    await db.commit()
    return attachment


@router.post("/{article_id}/convert", response_model=ArticleResponse)
async def import_document_content(
    article_id: str,
    request: Optional[ConvertRequest] = None,
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Convert the article's Word document to Markdown and store it as the content.

    Uses the given attachment, or the most recent Word document.
    """
    await AttachmentService(db, storage).import_document_content(
        article_id, request.attachment_id if request else None
    )
    await db.commit()
    return ArticleResponse.model_validate(await ArticleService(db).get_article(article_id))


# ============================================================================
# Payment
# ============================================================================


@router.get("/{article_id}/payment/preview", response_model=PaymentCalculationResponse)
async def preview_payment(article_id: str, db: AsyncSession = Depends(get_db)):
    """
    Calculate the payment with the current rates without saving it.
    """
    return await PaymentService(db).preview_payment(article_id)


@router.post("/{article_id}/payment/calculate", response_model=PaymentCalculationResponse)
async def calculate_payment(
    article_id: str,
    request: Optional[CalculatePaymentRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """
    Calculate and store the payment. Manual amounts need recalculate=true.
    """
    calculation = await PaymentService(db).calculate_article_payment(
        article_id, recalculate=request.recalculate if request else False
    )
    await db.commit()
    return calculation


@router.put("/{article_id}/payment/manual", response_model=ArticleResponse)
async def set_manual_payment(
    article_id: str,
    request: ManualPaymentRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Override the payment amount. Manual amounts survive recalculation.
    """
    await PaymentService(db).set_manual_payment(article_id, request.amount)
    await db.commit()
    return ArticleResponse.model_validate(await ArticleService(db).get_article(article_id))


@router.post("/{article_id}/payment/mark-paid", response_model=ArticleResponse)
async def mark_paid(
    article_id: str,
    request: Optional[MarkPaidRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    await PaymentService(db).mark_payment_complete(article_id, request.amount if request else None)
    await db.commit()
    return ArticleResponse.model_validate(await ArticleService(db).get_article(article_id))


@router.post("/{article_id}/payment/mark-unpaid", response_model=ArticleResponse)
async def mark_unpaid(article_id: str, db: AsyncSession = Depends(get_db)):
    await PaymentService(db).mark_payment_unpaid(article_id)
    await db.commit()
    return ArticleResponse.model_validate(await ArticleService(db).get_article(article_id))


@router.patch("/{article_id}/payment/bonuses", response_model=ArticleResponse)
async def update_bonus_flags(
    article_id: str,
    request: BonusFlagsRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Toggle bonus flags; the payment is recalculated unless it was set manually.
    """
    await PaymentService(db).update_bonus_flags(article_id, **request.model_dump(exclude_unset=True))
    await db.commit()
    return ArticleResponse.model_validate(await ArticleService(db).get_article(article_id))
