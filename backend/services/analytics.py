"""
Analytics service.

Aggregates article, payment and author data for the dashboard and the
analytics pages. Month and semester grouping is done in Python so the
queries stay portable between PostgreSQL and SQLite.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.exceptions import ValidationError
from infrastructure.database.models import (
    Article,
    ArticleTier,
    Author,
    AuthorType,
    InternalStatus,
)

logger = logging.getLogger(__name__)

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

SEMESTER_ORDER = {"Winter": 0, "Summer": 1, "Fall": 2}

# Inclusive month ranges
SEMESTER_MONTHS = {
    "Winter": (1, 4),
    "Summer": (5, 8),
    "Fall": (9, 12),
}

BONUS_FIELDS = {
    "Research": "has_research_bonus",
    "Time-Sensitive": "has_time_sensitive_bonus",
    "Multimedia": "has_multimedia_bonus",
    "Pro Photos": "has_professional_photos",
    "Pro Graphics": "has_professional_graphics",
}


def semester_for_month(month: int) -> str:
    if month >= 9:
        return "Fall"
    if month >= 5:
        return "Summer"
    return "Winter"


def month_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def tier_label(tier: str) -> str:
    """'Tier 1 (Basic)' -> 'Tier 1'."""
    return tier.split(" (")[0]


def round_half_up(value: float) -> int:
    """12.5 -> 13. The builtin round() sends halves to the even neighbour."""
    return math.floor(value + 0.5)


def percentage(count: int, total: int) -> int:
    return round_half_up(count / (total or 1) * 100)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _shift_months(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _range(column, start: Optional[datetime], end: Optional[datetime]) -> list:
    conditions = []
    if start:
        conditions.append(column >= start)
    if end:
        conditions.append(column <= end)
    return conditions


class AnalyticsService:
    """Read-only reporting queries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, *conditions) -> int:
        query = select(func.count()).select_from(Article)
        for condition in conditions:
            query = query.where(condition)
        return await self.db.scalar(query) or 0

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def dashboard_stats(self) -> dict:
        now = datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        recent = await self.db.execute(
            select(Article)
            .options(selectinload(Article.author))
            .order_by(Article.created_at.desc())
            .limit(5)
        )
        return {
            "total_articles": await self._count(),
            "pending_review": await self._count(
                Article.internal_status == InternalStatus.PENDING_REVIEW.value
            ),
            "in_review": await self._count(Article.internal_status == InternalStatus.IN_REVIEW.value),
            "published": await self._count(Article.internal_status == InternalStatus.PUBLISHED.value),
            "total_authors": await self.db.scalar(select(func.count()).select_from(Author)) or 0,
            "this_month": await self._count(Article.created_at >= month_start),
            "recent_articles": list(recent.scalars().all()),
        }

    async def status_distribution(self) -> dict[str, int]:
        result = await self.db.execute(
            select(Article.internal_status, func.count()).group_by(Article.internal_status)
        )
        counts = dict(result.all())
        return {status.value: counts.get(status.value, 0) for status in InternalStatus}

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def payment_stats(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> dict:
        paid_conditions = [Article.payment_status.is_(True), *_range(Article.paid_at, start, end)]
        paid = (
            await self.db.execute(
                select(
                    func.coalesce(func.sum(Article.payment_amount), 0),
                    func.count(Article.id),
                ).where(and_(*paid_conditions))
            )
        ).one()

        pending = (
            await self.db.execute(
                select(
                    func.coalesce(func.sum(Article.payment_amount), 0),
                    func.count(Article.id),
                ).where(
                    Article.payment_status.is_(False),
                    Article.payment_amount.is_not(None),
                )
            )
        ).one()

        total_paid, paid_count = int(paid[0]), paid[1]
        return {
            "total_paid": total_paid,
            "paid_count": paid_count,
            "average_payment": round_half_up(total_paid / paid_count) if paid_count else 0,
            "total_pending": int(pending[0]),
            "pending_count": pending[1],
        }

    async def payment_status_breakdown(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> dict:
        created = _range(Article.created_at, start, end)
        result = await self.db.execute(
            select(
                Article.payment_status,
                func.count(Article.id),
                func.coalesce(func.sum(Article.payment_amount), 0),
            )
            .where(Article.payment_amount.is_not(None), *created)
            .group_by(Article.payment_status)
        )
        breakdown = {
            "paid": {"count": 0, "amount": 0},
            "unpaid": {"count": 0, "amount": 0},
        }
        for is_paid, count, amount in result.all():
            breakdown["paid" if is_paid else "unpaid"] = {"count": count, "amount": int(amount)}
        breakdown["uncalculated"] = await self._count(Article.payment_amount.is_(None), *created)
        return breakdown

    async def tier_analytics(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[dict]:
        result = await self.db.execute(
            select(
                Article.article_tier,
                func.count(Article.id),
                func.coalesce(func.sum(Article.payment_amount), 0),
            )
            .where(Article.payment_amount.is_not(None), *_range(Article.created_at, start, end))
            .group_by(Article.article_tier)
        )
        rows = {tier: (count, int(total)) for tier, count, total in result.all()}
        analytics = []
        for tier in ArticleTier:
            count, total = rows.get(tier.value, (0, 0))
            analytics.append(
                {
                    "tier": tier.value,
                    "label": tier_label(tier.value),
                    "article_count": count,
                    "total_payment": total,
                    "average_payment": round_half_up(total / count) if count else 0,
                }
            )
        return analytics

    async def bonus_frequency(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[dict]:
        created = _range(Article.created_at, start, end)
        total = await self._count(*created)
        frequency = []
        for name, field in BONUS_FIELDS.items():
            count = await self._count(getattr(Article, field).is_(True), *created)
            frequency.append({"name": name, "count": count, "percentage": percentage(count, total)})
        return frequency

    # ------------------------------------------------------------------
    # Authors
    # ------------------------------------------------------------------

    async def top_earning_authors(
        self,
        limit: int = 10,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[dict]:
        earnings = func.coalesce(func.sum(Article.payment_amount), 0).label("total_earnings")
        result = await self.db.execute(
            select(Author, earnings, func.count(Article.id))
            .join(Article, Article.author_id == Author.id)
            .where(Article.payment_status.is_(True), *_range(Article.paid_at, start, end))
            .group_by(Author.id)
            .order_by(earnings.desc())
            .limit(limit)
        )
        return [
            {
                "author_id": author.id,
                "name": author.full_name,
                "author_type": author.author_type,
                "total_earnings": int(total),
                "article_count": count,
            }
            for author, total, count in result.all()
        ]

    async def _earnings_by(self, column, *conditions) -> list[dict]:
        result = await self.db.execute(
            select(
                column,
                func.count(func.distinct(Author.id)),
                func.count(Article.id),
                func.coalesce(func.sum(Article.payment_amount), 0),
            )
            .join(Article, Article.author_id == Author.id)
            .where(Article.payment_status.is_(True), *conditions)
            .group_by(column)
        )
        rows = [
            {
                "type": value or "Unknown",
                "author_count": authors,
                "article_count": articles,
                "total_earnings": int(total),
            }
            for value, authors, articles, total in result.all()
        ]
        return sorted(rows, key=lambda r: r["total_earnings"], reverse=True)

    async def earnings_by_author_type(self) -> list[dict]:
        return await self._earnings_by(Author.author_type)

    async def earnings_by_student_type(self) -> list[dict]:
        return await self._earnings_by(
            Author.student_type, Author.author_type == AuthorType.STUDENT.value
        )

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    async def monthly_trends(self, months: int = 12) -> list[dict]:
        """Submissions and paid totals per month, oldest first, including empty months."""
        now = datetime.now(timezone.utc)
        first_year, first_month = _shift_months(now.year, now.month, -(months - 1))
        since = datetime(first_year, first_month, 1, tzinfo=timezone.utc)

        buckets: dict[tuple[int, int], dict] = {}
        for offset in range(months):
            year, month = _shift_months(first_year, first_month, offset)
            buckets[(year, month)] = {
                "month": f"{year:04d}-{month:02d}",
                "label": month_label(year, month),
                "submissions": 0,
                "paid_count": 0,
                "total_paid": 0,
            }

        result = await self.db.execute(
            select(Article.created_at, Article.payment_status, Article.payment_amount).where(
                Article.created_at >= since
            )
        )
        for created_at, is_paid, amount in result.all():
            created_at = _as_utc(created_at)
            bucket = buckets.get((created_at.year, created_at.month))
            if bucket is None:
                continue
            bucket["submissions"] += 1
            if is_paid and amount is not None:
                bucket["paid_count"] += 1
                bucket["total_paid"] += amount
        return list(buckets.values())

    async def semester_breakdown(self, years: int = 3) -> list[dict]:
        """Paid totals per academic semester over the last `years` years."""
        since = datetime(datetime.now(timezone.utc).year - years + 1, 1, 1, tzinfo=timezone.utc)
        result = await self.db.execute(
            select(Article.created_at, Article.payment_amount).where(
                Article.created_at >= since,
                Article.payment_status.is_(True),
                Article.payment_amount.is_not(None),
            )
        )

        buckets: dict[tuple[int, str], dict] = {}
        for created_at, amount in result.all():
            created_at = _as_utc(created_at)
            semester = semester_for_month(created_at.month)
            key = (created_at.year, semester)
            bucket = buckets.setdefault(
                key,
                {
                    "semester": semester,
                    "year": created_at.year,
                    "label": f"{semester} {created_at.year}",
                    "article_count": 0,
                    "total_paid": 0,
                },
            )
            bucket["article_count"] += 1
            bucket["total_paid"] += amount

        ordered = sorted(buckets.items(), key=lambda item: (item[0][0], SEMESTER_ORDER[item[0][1]]))
        return [bucket for _, bucket in ordered]

    # ------------------------------------------------------------------
    # Drill-downs
    # ------------------------------------------------------------------

    async def _articles(self, *conditions, limit: int = 20) -> list[Article]:
        result = await self.db.execute(
            select(Article)
            .options(selectinload(Article.author))
            .where(*conditions)
            .order_by(Article.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def articles_by_tier(self, tier: str, limit: int = 20) -> list[Article]:
        return await self._articles(Article.article_tier == tier, limit=limit)

    async def articles_by_bonus(self, bonus: str, limit: int = 20) -> list[Article]:
        field = BONUS_FIELDS.get(bonus)
        if not field:
            raise ValidationError(f"Unknown bonus type: {bonus}")
        return await self._articles(getattr(Article, field).is_(True), limit=limit)

    async def articles_by_payment_status(self, paid: bool, limit: int = 20) -> list[Article]:
        return await self._articles(
            Article.payment_status.is_(paid),
            Article.payment_amount.is_not(None),
            limit=limit,
        )

    async def articles_by_month(self, year: int, month: int, limit: int = 50) -> list[Article]:
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")
        next_year, next_month = _shift_months(year, month, 1)
        return await self._articles(
            Article.created_at >= datetime(year, month, 1, tzinfo=timezone.utc),
            Article.created_at < datetime(next_year, next_month, 1, tzinfo=timezone.utc),
            limit=limit,
        )

    async def articles_by_semester(self, semester: str, year: int, limit: int = 30) -> list[Article]:
        months = SEMESTER_MONTHS.get(semester)
        if not months:
            raise ValidationError(f"Unknown semester: {semester}")
        first, last = months
        end_year, end_month = _shift_months(year, last, 1)
        return await self._articles(
            Article.created_at >= datetime(year, first, 1, tzinfo=timezone.utc),
            Article.created_at < datetime(end_year, end_month, 1, tzinfo=timezone.utc),
            Article.payment_status.is_(True),
            Article.payment_amount.is_not(None),
            limit=limit,
        )

    async def authors_by_type(
        self,
        author_type: Optional[str] = None,
        student_type: Optional[str] = None,
        limit: int = 20,
    ) -> list[dict]:
        """Authors filtered by type (or student type, 'Unknown' meaning unset) with paid stats."""
        query = select(Author)
        if student_type == "Unknown":
            query = query.where(
                Author.author_type == AuthorType.STUDENT.value, Author.student_type.is_(None)
            )
        elif student_type:
            query = query.where(Author.student_type == student_type)
        elif author_type:
            query = query.where(Author.author_type == author_type)
        authors = list(
            (await self.db.execute(query.order_by(Author.created_at.desc()).limit(limit))).scalars().all()
        )
        if not authors:
            return []

        stats_result = await self.db.execute(
            select(
                Article.author_id,
                func.count(Article.id),
                func.coalesce(func.sum(Article.payment_amount), 0),
            )
            .where(Article.author_id.in_([a.id for a in authors]), Article.payment_status.is_(True))
            .group_by(Article.author_id)
        )
        stats = {author_id: (count, int(total)) for author_id, count, total in stats_result.all()}
        return [
            {
                "author": author,
                "article_count": stats.get(author.id, (0, 0))[0],
                "total_earnings": stats.get(author.id, (0, 0))[1],
            }
            for author in authors
        ]
