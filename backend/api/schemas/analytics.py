"""
Analytics API schemas. Money values are in cents.
"""

from pydantic import BaseModel, ConfigDict

from api.schemas.articles import ArticleListItem
from api.schemas.authors import AuthorResponse

# ============================================================================
# Dashboard
# ============================================================================


class DashboardStatsResponse(BaseModel):
    total_articles: int
    pending_review: int
    in_review: int
    published: int
    total_authors: int
    this_month: int
    recent_articles: list[ArticleListItem]


# ============================================================================
# Payments
# ============================================================================


class PaymentStatsResponse(BaseModel):
    total_paid: int
    paid_count: int
    average_payment: int
    total_pending: int
    pending_count: int


class CountAmount(BaseModel):
    count: int
    amount: int


class PaymentStatusBreakdownResponse(BaseModel):
    paid: CountAmount
    unpaid: CountAmount
    uncalculated: int


class TierAnalyticsItem(BaseModel):
    tier: str
    label: str
    article_count: int
    total_payment: int
    average_payment: int


class BonusFrequencyItem(BaseModel):
    name: str
    count: int
    percentage: int


# ============================================================================
# Authors
# ============================================================================


class TopEarnerItem(BaseModel):
    author_id: str
    name: str
    author_type: str | None = None
    total_earnings: int
    article_count: int


class EarningsByTypeItem(BaseModel):
    type: str
    author_count: int
    article_count: int
    total_earnings: int


class AuthorWithStats(BaseModel):
    author: AuthorResponse
    article_count: int
    total_earnings: int

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Trends
# ============================================================================


class MonthlyTrendItem(BaseModel):
    month: str
    label: str
    submissions: int
    paid_count: int
    total_paid: int


class SemesterItem(BaseModel):
    semester: str
    year: int
    label: str
    article_count: int
    total_paid: int
