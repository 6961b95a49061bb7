"""Integration tests for analytics endpoints."""
import pytest
from datetime import datetime, timezone
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import uuid4

from infrastructure.database.models import Article, Author, InternalStatus

pytestmark = pytest.mark.asyncio


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
async def paid_articles(
    db_session: AsyncSession, author: Author, faculty_author: Author
) -> list[Article]:
    """Two paid student articles, one unpaid, one faculty article."""
    now = datetime.now(timezone.utc)
    articles = [
        Article(
            id=str(uuid4()),
            author_id=author.id,
            title="Paid One",
            article_tier="Tier 2 (Standard)",
            internal_status=InternalStatus.PUBLISHED.value,
            payment_status=True,
            payment_amount=4500,
            paid_at=_utc(2024, 2, 10),
            has_research_bonus=True,
            created_at=_utc(2024, 2, 1),
        ),
        Article(
            id=str(uuid4()),
            author_id=author.id,
            title="Paid Two",
            article_tier="Tier 1 (Basic)",
            internal_status=InternalStatus.PUBLISHED.value,
            payment_status=True,
            payment_amount=2000,
            paid_at=_utc(2024, 10, 5),
            created_at=_utc(2024, 9, 20),
        ),
        Article(
            id=str(uuid4()),
            author_id=author.id,
            title="Unpaid",
            article_tier="Tier 1 (Basic)",
            internal_status=InternalStatus.PENDING_REVIEW.value,
            payment_amount=2000,
            created_at=now,
        ),
        Article(
            id=str(uuid4()),
            author_id=faculty_author.id,
            title="Faculty Column",
            internal_status=InternalStatus.IN_REVIEW.value,
            payment_status=True,
            payment_amount=1000,
            paid_at=_utc(2024, 3, 1),
            created_at=_utc(2024, 3, 1),
        ),
    ]
    db_session.add_all(articles)
    await db_session.commit()
    return articles


class TestOverview:
    async def test_dashboard(self, async_client: AsyncClient, paid_articles):
        response = await async_client.get("/api/v1/analytics/dashboard")

        assert response.status_code == 200
        data = response.json()
        assert data["total_articles"] == 4
        assert data["pending_review"] == 1
        assert data["in_review"] == 1
        assert data["published"] == 2
        assert data["total_authors"] == 2
        assert data["this_month"] == 1
        assert data["recent_articles"][0]["title"] == "Unpaid"

    async def test_status_distribution_lists_every_status(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/status-distribution")).json()

        assert len(data) == len(InternalStatus)
        assert data["Published"] == 2
        assert data["Draft"] == 0


class TestPaymentAnalytics:
    async def test_payment_stats(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/payments")).json()

        assert data == {
            "total_paid": 7500,
            "paid_count": 3,
            "average_payment": 2500,
            "total_pending": 2000,
            "pending_count": 1,
        }

    async def test_payment_stats_date_range(self, async_client: AsyncClient, paid_articles):
        data = (
            await async_client.get(
                "/api/v1/analytics/payments",
                params={"start_date": "2024-02-01", "end_date": "2024-03-01"},
            )
        ).json()

        assert data["total_paid"] == 5500
        assert data["paid_count"] == 2

    async def test_payment_status_breakdown(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/payments/status")).json()

        assert data["paid"] == {"count": 3, "amount": 7500}
        assert data["unpaid"] == {"count": 1, "amount": 2000}
        assert data["uncalculated"] == 0

    async def test_tiers(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/tiers")).json()

        by_tier = {t["label"]: t for t in data}
        assert by_tier["Tier 1"]["article_count"] == 3
        assert by_tier["Tier 1"]["total_payment"] == 5000
        assert by_tier["Tier 2"]["average_payment"] == 4500
        assert by_tier["Tier 3"]["article_count"] == 0

    async def test_bonuses(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/bonuses")).json()

        research = next(b for b in data if b["name"] == "Research")
        assert research == {"name": "Research", "count": 1, "percentage": 25}


class TestAuthorAnalytics:
    async def test_top_earners(self, async_client: AsyncClient, paid_articles, author: Author):
        data = (await async_client.get("/api/v1/analytics/authors/top-earners")).json()

        assert data[0]["author_id"] == author.id
        assert data[0]["total_earnings"] == 6500
        assert data[0]["article_count"] == 2

    async def test_by_type(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/authors/by-type")).json()

        assert [(r["type"], r["total_earnings"]) for r in data] == [("Student", 6500), ("Faculty", 1000)]

    async def test_by_student_type(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/authors/by-student-type")).json()

        assert data == [{"type": "Undergrad", "author_count": 1, "article_count": 2, "total_earnings": 6500}]

    async def test_drilldown_authors(self, async_client: AsyncClient, paid_articles, faculty_author: Author):
        data = (
            await async_client.get("/api/v1/analytics/drilldown/authors", params={"author_type": "Faculty"})
        ).json()

        assert len(data) == 1
        assert data[0]["author"]["id"] == faculty_author.id
        assert data[0]["total_earnings"] == 1000


class TestTrends:
    async def test_monthly_trends_include_empty_months(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/trends/monthly", params={"months": 3})).json()

        assert len(data) == 3
        now = datetime.now(timezone.utc)
        assert data[-1]["month"] == f"{now.year:04d}-{now.month:02d}"
        assert data[-1]["submissions"] == 1
        assert sum(m["submissions"] for m in data[:-1]) == 0

    async def test_semesters(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/trends/semesters", params={"years": 10})).json()

        assert [(s["label"], s["total_paid"]) for s in data] == [("Winter 2024", 5500), ("Fall 2024", 2000)]


class TestDrilldowns:
    async def test_by_tier(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/drilldown/tier/Tier 2 (Standard)")).json()
        assert [a["title"] for a in data] == ["Paid One"]

    async def test_by_bonus(self, async_client: AsyncClient, paid_articles):
        data = (await async_client.get("/api/v1/analytics/drilldown/bonus/Research")).json()
        assert [a["title"] for a in data] == ["Paid One"]

    async def test_unknown_bonus(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/analytics/drilldown/bonus/Nope")
        assert response.status_code == 400

    async def test_by_payment_status(self, async_client: AsyncClient, paid_articles):
        data = (
            await async_client.get("/api/v1/analytics/drilldown/payment-status", params={"paid": "false"})
        ).json()
        assert [a["title"] for a in data] == ["Unpaid"]

    async def test_by_month(self, async_client: AsyncClient, paid_articles):
        data = (
            await async_client.get("/api/v1/analytics/drilldown/month", params={"year": 2024, "month": 9})
        ).json()
        assert [a["title"] for a in data] == ["Paid Two"]

    async def test_by_semester(self, async_client: AsyncClient, paid_articles):
        data = (
            await async_client.get(
                "/api/v1/analytics/drilldown/semester", params={"semester": "Winter", "year": 2024}
            )
        ).json()
        assert [a["title"] for a in data] == ["Faculty Column", "Paid One"]
