"""Integration tests for article endpoints."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import uuid4

from core.exceptions import ValidationError
from infrastructure.database.models import Article, Author, InternalStatus
from services.articles import ArticleService

pytestmark = pytest.mark.asyncio


class TestCreateArticle:
    """Tests for POST /articles endpoint."""

    async def test_create_article_with_new_author(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/articles",
            json={
                "title": "  Library Hours Extended ",
                "article_tier": "Tier 3 (Advanced)",
                "author_given_name": "Sam",
                "author_surname": "Lee",
                "author_email": "Sam.Lee@Example.com",
                "multimedia_types": ["Photo", "Photo", "Video"],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Library Hours Extended"
        assert data["internal_status"] == InternalStatus.DRAFT.value
        assert data["author"]["email"] == "sam.lee@example.com"
        assert data["multimedia_types"] == ["Photo", "Video"]
        assert len(data["status_history"]) == 1
        assert data["status_history"][0]["from_status"] is None
        assert data["status_history"][0]["changed_by"] == "Manual Entry"

    async def test_create_article_reuses_existing_author(
        self, async_client: AsyncClient, author: Author
    ):
        response = await async_client.post(
            "/api/v1/articles",
            json={"title": "Second Story", "author_id": author.id},
        )

        assert response.status_code == 201
        assert response.json()["author"]["id"] == author.id

    async def test_create_article_requires_author(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/articles", json={"title": "Orphan"})

        assert response.status_code == 400
        assert "Author" in response.json()["detail"]

    async def test_create_article_unknown_author_id(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/articles", json={"title": "X", "author_id": str(uuid4())}
        )
        assert response.status_code == 404

    async def test_create_article_invalid_tier(self, async_client: AsyncClient, author: Author):
        response = await async_client.post(
            "/api/v1/articles",
            json={"title": "X", "author_id": author.id, "article_tier": "Tier 4"},
        )
        assert response.status_code == 422


class TestListArticles:
    """Tests for GET /articles endpoint."""

    async def test_list_and_filter(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        article: Article,
        author: Author,
    ):
        db_session.add(
            Article(
                id=str(uuid4()),
                author_id=author.id,
                title="Robotics Club Wins",
                internal_status=InternalStatus.PUBLISHED.value,
            )
        )
        await db_session.commit()

        response = await async_client.get("/api/v1/articles")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["pages"] == 1

        response = await async_client.get("/api/v1/articles", params={"status": "Published"})
        assert [a["title"] for a in response.json()["items"]] == ["Robotics Club Wins"]

        response = await async_client.get("/api/v1/articles", params={"search": "garden"})
        assert [a["id"] for a in response.json()["items"]] == [article.id]

    async def test_pagination(self, async_client: AsyncClient, db_session: AsyncSession, author: Author):
        for i in range(3):
            db_session.add(Article(id=str(uuid4()), author_id=author.id, title=f"Story {i}"))
        await db_session.commit()

        response = await async_client.get(
            "/api/v1/articles", params={"page": 2, "page_size": 2, "sort_by": "title", "sort_order": "asc"}
        )

        data = response.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert [a["title"] for a in data["items"]] == ["Story 2"]


class TestArticleDetail:
    async def test_get_article(self, async_client: AsyncClient, article: Article):
        response = await async_client.get(f"/api/v1/articles/{article.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Campus Garden Grows"
        assert data["author"]["full_name"] == "Jane Doe"

    async def test_get_missing_article(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/v1/articles/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Article not found"

    async def test_update_article(self, async_client: AsyncClient, article: Article):
        response = await async_client.put(
            f"/api/v1/articles/{article.id}",
            json={"title": "Garden Update", "is_featured": True, "multimedia_types": ["Audio"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Garden Update"
        assert data["is_featured"] is True
        assert data["multimedia_types"] == ["Audio"]
        assert data["article_tier"] == "Tier 2 (Standard)"

    @pytest.mark.parametrize(
        "body", [{"title": None}, {"article_tier": None}, {"is_featured": None}, {"prefers_anonymity": None}]
    )
    async def test_update_rejects_null_required_field(
        self, async_client: AsyncClient, article: Article, body: dict
    ):
        response = await async_client.put(f"/api/v1/articles/{article.id}", json=body)

        assert response.status_code == 422
        detail = (await async_client.get(f"/api/v1/articles/{article.id}")).json()
        assert detail["title"] == "Campus Garden Grows"

    async def test_update_allows_clearing_nullable_fields(self, async_client: AsyncClient, article: Article):
        response = await async_client.put(
            f"/api/v1/articles/{article.id}", json={"content": None, "issue_id": None}
        )

        assert response.status_code == 200
        assert response.json()["content"] is None

    async def test_update_unknown_issue(self, async_client: AsyncClient, article: Article):
        response = await async_client.put(f"/api/v1/articles/{article.id}", json={"issue_id": str(uuid4())})

        assert response.status_code == 404
        assert response.json()["detail"] == "Issue not found"

    async def test_service_rejects_null_title(self, db_session: AsyncSession, article: Article):
        with pytest.raises(ValidationError):
            await ArticleService(db_session).update_article(article.id, title=None)

    async def test_delete_article_removes_files(
        self, async_client: AsyncClient, article: Article, storage, png_bytes
    ):
        upload = await async_client.post(
            f"/api/v1/articles/{article.id}/attachments",
            files={"file": ("photo.png", png_bytes, "image/png")},
            data={"kind": "photo"},
        )
        path = upload.json()["file_path"]

        response = await async_client.delete(f"/api/v1/articles/{article.id}")

        assert response.status_code == 204
        assert not await storage.exists(path)
        assert (await async_client.get(f"/api/v1/articles/{article.id}")).status_code == 404


class TestStatusWorkflow:
    async def test_status_change_records_history(self, async_client: AsyncClient, article: Article):
        response = await async_client.put(
            f"/api/v1/articles/{article.id}/status",
            json={"status": "In Review", "changed_by": "Editor Ed", "notes": "Looks promising"},
        )

        assert response.status_code == 200
        assert response.json()["internal_status"] == "In Review"

        history = (await async_client.get(f"/api/v1/articles/{article.id}/history")).json()
        assert len(history) == 1
        assert history[0]["from_status"] == "Pending Review"
        assert history[0]["to_status"] == "In Review"
        assert history[0]["changed_by"] == "Editor Ed"

    async def test_same_status_is_noop(self, async_client: AsyncClient, article: Article):
        await async_client.put(
            f"/api/v1/articles/{article.id}/status", json={"status": "Pending Review"}
        )

        history = (await async_client.get(f"/api/v1/articles/{article.id}/history")).json()
        assert history == []

    async def test_unknown_status_rejected(self, async_client: AsyncClient, article: Article):
        response = await async_client.put(
            f"/api/v1/articles/{article.id}/status", json={"status": "Lost"}
        )
        assert response.status_code == 422

    async def test_bulk_status(self, async_client: AsyncClient, article: Article):
        missing = str(uuid4())

        response = await async_client.post(
            "/api/v1/articles/bulk-status",
            json={"article_ids": [article.id, missing], "status": "Approved"},
        )

        assert response.status_code == 200
        assert response.json() == {"updated": 1, "not_found": [missing]}
        detail = (await async_client.get(f"/api/v1/articles/{article.id}")).json()
        assert detail["internal_status"] == "Approved"


class TestNotes:
    async def test_add_list_delete_note(self, async_client: AsyncClient, article: Article):
        created = await async_client.post(
            f"/api/v1/articles/{article.id}/notes",
            json={"content": "  Check photo credits ", "created_by": "Ed"},
        )
        assert created.status_code == 201
        note = created.json()
        assert note["content"] == "Check photo credits"

        notes = (await async_client.get(f"/api/v1/articles/{article.id}/notes")).json()
        assert [n["id"] for n in notes] == [note["id"]]

        deleted = await async_client.delete(f"/api/v1/articles/{article.id}/notes/{note['id']}")
        assert deleted.status_code == 204
        assert (await async_client.get(f"/api/v1/articles/{article.id}/notes")).json() == []

    async def test_delete_note_wrong_article(self, async_client: AsyncClient, article: Article):
        response = await async_client.delete(f"/api/v1/articles/{article.id}/notes/{uuid4()}")
        assert response.status_code == 404


class TestDuplicateArticles:
    async def test_find_duplicates(
        self, async_client: AsyncClient, db_session: AsyncSession, article: Article, author: Author
    ):
        db_session.add(Article(id=str(uuid4()), author_id=author.id, title="campus garden grows"))
        await db_session.commit()

        response = await async_client.get("/api/v1/articles/duplicates")

        assert response.status_code == 200
        groups = response.json()
        assert len(groups) == 1
        assert groups[0]["key"] == "campus garden grows|jane.doe@example.com"
        assert len(groups[0]["articles"]) == 2
