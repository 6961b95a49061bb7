"""
Article API schemas: articles, status workflow, notes and attachments.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator, model_validator

from adapters.storage.file_storage import FILES_URL_PREFIX
from api.utils import reject_explicit_nulls
from api.schemas.authors import AuthorResponse
from infrastructure.database.models import ArticleTier, InternalStatus, MultimediaType

# ============================================================================
# Article Requests
# ============================================================================


class ArticleCreateRequest(BaseModel):
    """Manual article entry. Provide author_id or the author's name and email."""

    title: str = Field(..., min_length=1, max_length=500)
    article_tier: ArticleTier = ArticleTier.TIER_1
    author_id: str | None = None
    author_given_name: str | None = Field(None, max_length=255)
    author_surname: str | None = Field(None, max_length=255)
    author_email: EmailStr | None = None
    content: str | None = None
    prefers_anonymity: bool = False
    issue_id: str | None = None
    multimedia_types: list[MultimediaType] = Field(default_factory=list)
    changed_by: str | None = Field(None, max_length=255)


class ArticleUpdateRequest(BaseModel):
    """Partial article update."""

    title: str | None = Field(None, min_length=1, max_length=500)
    article_tier: ArticleTier | None = None
    content: str | None = None
    feedback_letter: str | None = None
    is_featured: bool | None = None
    prefers_anonymity: bool | None = None
    issue_id: str | None = None
    volume: int | None = Field(None, ge=0)
    issue: int | None = Field(None, ge=0)
    multimedia_types: list[MultimediaType] | None = None

    @model_validator(mode="after")
    def required_columns_not_null(self):
        reject_explicit_nulls(self, ("title", "article_tier", "is_featured", "prefers_anonymity"))
        return self


class StatusUpdateRequest(BaseModel):
    """Move an article to a new status."""

    status: InternalStatus
    changed_by: str | None = Field(None, max_length=255)
    notes: str | None = None


class BulkStatusRequest(BaseModel):
    """Move several articles to the same status."""

    article_ids: list[str] = Field(..., min_length=1, max_length=500)
    status: InternalStatus
    changed_by: str | None = Field(None, max_length=255)


class BulkStatusResponse(BaseModel):
    updated: int
    not_found: list[str]


class NoteCreateRequest(BaseModel):
    content: str = Field(..., min_length=1)
    created_by: str | None = Field(None, max_length=255)


class CaptionUpdateRequest(BaseModel):
    caption: str | None = None


class ConvertRequest(BaseModel):
    """Import a Word document's text into the article body."""

    attachment_id: str | None = None


# ============================================================================
# Responses
# ============================================================================


class StatusHistoryResponse(BaseModel):
    id: str
    article_id: str
    from_status: str | None = None
    to_status: str
    changed_by: str | None = None
    changed_at: datetime
    notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class NoteResponse(BaseModel):
    id: str
    article_id: str
    content: str
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttachmentResponse(BaseModel):
    """Stored file attached to an article."""

    id: str
    article_id: str
    attachment_type: str
    file_name: str
    original_file_name: str
    file_path: str
    file_size: int
    mime_type: str | None = None
    caption: str | None = None
    photo_number: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def url(self) -> str:
        return f"{FILES_URL_PREFIX}/{self.file_path}"


class IssueSummary(BaseModel):
    id: str
    issue_number: int
    title: str | None = None
    volume_id: str

    model_config = ConfigDict(from_attributes=True)


class ArticleListItem(BaseModel):
    """Article row in the list views."""

    id: str
    title: str
    article_tier: str
    internal_status: str
    automation_status: str
    prefers_anonymity: bool
    is_featured: bool
    payment_status: bool
    payment_amount: int | None = None
    payment_is_manual: bool
    volume: int | None = None
    issue: int | None = None
    issue_id: str | None = None
    submitted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    author: AuthorResponse | None = None

    model_config = ConfigDict(from_attributes=True)


class ArticleResponse(ArticleListItem):
    """Full article with related rows."""

    content: str | None = None
    feedback_letter: str | None = None
    article_file_path: str | None = None
    form_response_id: str | None = None
    paid_at: datetime | None = None
    payment_rate_snapshot: dict[str, Any] | None = None
    payment_calculated_at: datetime | None = None
    has_research_bonus: bool
    has_time_sensitive_bonus: bool
    has_professional_photos: bool
    has_professional_graphics: bool
    has_multimedia_bonus: bool | None = None
    multimedia_types: list[str] = Field(default_factory=list)
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    notes: list[NoteResponse] = Field(default_factory=list)
    status_history: list[StatusHistoryResponse] = Field(default_factory=list)
    publication_issue: IssueSummary | None = None

    @field_validator("multimedia_types", mode="before")
    @classmethod
    def flatten_multimedia_types(cls, v: Any) -> list[str]:
        return sorted(getattr(m, "multimedia_type", m) for m in v or [])


class ArticleListResponse(BaseModel):
    """Paginated article list."""

    items: list[ArticleListItem]
    total: int
    page: int
    page_size: int
    pages: int


class DuplicateArticleGroup(BaseModel):
    key: str
    articles: list[ArticleListItem]
