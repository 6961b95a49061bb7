"""
Analytics API routes: dashboard, payment and author statistics, trends and drill-downs.
"""

from datetime import date, datetime, time, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.analytics import (
    AuthorWithStats,
    BonusFrequencyItem,
    DashboardStatsResponse,
    EarningsByTypeItem,
    MonthlyTrendItem,
    PaymentStatsResponse,
    PaymentStatusBreakdownResponse,
    SemesterItem,
    TierAnalyticsItem,
    TopEarnerItem,
)
from api.schemas.articles import ArticleListItem
from infrastructure.database.connection import get_db
from services.analytics import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


# ============================================================================
# Helper Functions
# ============================================================================


def date_range(
    start_date: Optional[date] = Query(None, description="Inclusive start date"),
    end_date: Optional[date] = Query(None, description="Inclusive end date"),
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Turn optional query dates into UTC datetime bounds covering whole days."""
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc) if start_date else None
    end = datetime.combine(end_date, time.max, tzinfo=timezone.utc) if end_date else None
    return start, end


# ============================================================================
# Overview
# ============================================================================


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def get_dashboard_stats(db: AsyncSession = Depends(get_db)):
    """
    Headline counts and the five most recent submissions.
    """
    return await AnalyticsService(db).dashboard_stats()


@router.get("/status-distribution", response_model=dict[str, int])
async def get_status_distribution(db: AsyncSession = Depends(get_db)):
    return await AnalyticsService(db).status_distribution()


# ============================================================================
# Payments
# ============================================================================


@router.get("/payments", response_model=PaymentStatsResponse)
async def get_payment_stats(
    period: tuple = Depends(date_range),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).payment_stats(*period)


@router.get("/payments/status", response_model=PaymentStatusBreakdownResponse)
async def get_payment_status_breakdown(
    period: tuple = Depends(date_range),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).payment_status_breakdown(*period)


@router.get("/tiers", response_model=list[TierAnalyticsItem])
async def get_tier_analytics(
    period: tuple = Depends(date_range),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).tier_analytics(*period)


@router.get("/bonuses", response_model=list[BonusFrequencyItem])
async def get_bonus_frequency(
    period: tuple = Depends(date_range),
    db: AsyncSession = Depends(get_db),
):
    """
    How often each bonus is awarded, as a share of all articles.
    """
    return await AnalyticsService(db).bonus_frequency(*period)


# ============================================================================
# Authors
# ============================================================================


@router.get("/authors/top-earners", response_model=list[TopEarnerItem])
async def get_top_earners(
    limit: int = Query(10, ge=1, le=100),
    period: tuple = Depends(date_range),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).top_earning_authors(limit, *period)


@router.get("/authors/by-type", response_model=list[EarningsByTypeItem])
async def get_earnings_by_author_type(db: AsyncSession = Depends(get_db)):
    return await AnalyticsService(db).earnings_by_author_type()


@router.get("/authors/by-student-type", response_model=list[EarningsByTypeItem])
async def get_earnings_by_student_type(db: AsyncSession = Depends(get_db)):
    return await AnalyticsService(db).earnings_by_student_type()


# ============================================================================
# Trends
# ============================================================================


@router.get("/trends/monthly", response_model=list[MonthlyTrendItem])
async def get_monthly_trends(
    months: int = Query(12, ge=1, le=60),
    db: AsyncSession = Depends(get_db),
):
    """
    Submissions and payments per month, oldest first, including empty months.
    """
    return await AnalyticsService(db).monthly_trends(months)


@router.get("/trends/semesters", response_model=list[SemesterItem])
async def get_semester_breakdown(
    years: int = Query(3, ge=1, le=10),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).semester_breakdown(years)


# ============================================================================
# Drill-downs
# ============================================================================


@router.get("/drilldown/tier/{tier}", response_model=list[ArticleListItem])
async def drilldown_tier(tier: str, db: AsyncSession = Depends(get_db)):
    return await AnalyticsService(db).articles_by_tier(tier)


@router.get("/drilldown/bonus/{bonus}", response_model=list[ArticleListItem])
async def drilldown_bonus(bonus: str, db: AsyncSession = Depends(get_db)):
    return await AnalyticsService(db).articles_by_bonus(bonus)


@router.get("/drilldown/payment-status", response_model=list[ArticleListItem])
async def drilldown_payment_status(
    paid: bool = Query(...),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).articles_by_payment_status(paid)


@router.get("/drilldown/month", response_model=list[ArticleListItem])
async def drilldown_month(
    year: int = Query(..., ge=1900, le=2200),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).articles_by_month(year, month)


@router.get("/drilldown/semester", response_model=list[ArticleListItem])
async def drilldown_semester(
    semester: str = Query(..., pattern="^(Winter|Summer|Fall)$"),
    year: int = Query(..., ge=1900, le=2200),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).articles_by_semester(semester, year)


@router.get("/drilldown/authors", response_model=list[AuthorWithStats])
async def drilldown_authors(
    author_type: Optional[str] = None,
    student_type: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).authors_by_type(author_type, student_type)
