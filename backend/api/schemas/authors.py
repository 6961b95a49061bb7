"""
Author API schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from api.utils import reject_explicit_nulls
from infrastructure.database.models import AuthorType, ContributorRole, StudentType

# ============================================================================
# Requests
# ============================================================================


class AuthorCreateRequest(BaseModel):
    """Request to create an author."""

    given_name: str = Field(..., min_length=1, max_length=255)
    surname: str = Field(default="", max_length=255)
    email: EmailStr
    role: ContributorRole = ContributorRole.GUEST_CONTRIBUTOR
    author_type: AuthorType | None = None
    student_type: StudentType | None = None
    auto_deposit_available: bool = False
    etransfer_email: EmailStr | None = None


class AuthorUpdateRequest(BaseModel):
    """Partial author update."""

    given_name: str | None = Field(None, min_length=1, max_length=255)
    surname: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    role: ContributorRole | None = None
    author_type: AuthorType | None = None
    student_type: StudentType | None = None
    auto_deposit_available: bool | None = None
    etransfer_email: EmailStr | None = None

    @model_validator(mode="after")
    def required_columns_not_null(self):
        reject_explicit_nulls(self, ("given_name", "surname", "email", "role", "auto_deposit_available"))
        return self


# ============================================================================
# Responses
# ============================================================================


class AuthorResponse(BaseModel):
    """Author response."""

    id: str
    given_name: str
    surname: str
    full_name: str
    email: str
    role: str
    author_type: str | None = None
    student_type: str | None = None
    auto_deposit_available: bool
    etransfer_email: str | None = None
    is_payment_eligible: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthorListItem(AuthorResponse):
    """Author with article count."""

    article_count: int = 0


class AuthorListResponse(BaseModel):
    """Paginated author list."""

    items: list[AuthorListItem]
    total: int
    page: int
    page_size: int
    pages: int


class AuthorArticleSummary(BaseModel):
    """Article row on the author page."""

    id: str
    title: str
    article_tier: str
    internal_status: str
    payment_status: bool
    payment_amount: int | None = None
    submitted_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthorStats(BaseModel):
    total_articles: int
    paid_articles: int
    total_earnings: int


class AuthorDetailResponse(BaseModel):
    """Author with articles and earnings."""

    author: AuthorResponse
    articles: list[AuthorArticleSummary]
    stats: AuthorStats
