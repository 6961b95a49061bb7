"""Integration tests for volumes, issues and saved views."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import uuid4

from infrastructure.database.models import Article, Author, Issue, Volume

pytestmark = pytest.mark.asyncio


class TestVolumes:
    async def test_create_and_list(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/volumes", json={"volume_number": 7, "year": 2025, "description": "Seventh"}
        )
        assert response.status_code == 201
        volume = response.json()
        assert volume["issues"] == []

        listed = (await async_client.get("/api/v1/volumes")).json()
        assert [v["volume_number"] for v in listed] == [7]

    async def test_duplicate_volume_number(self, async_client: AsyncClient, volume_with_issue):
        response = await async_client.post("/api/v1/volumes", json={"volume_number": 5})
        assert response.status_code == 409

    async def test_get_volume_with_issue_counts(
        self, async_client: AsyncClient, volume_with_issue, article: Article, db_session: AsyncSession
    ):
        volume, issue = volume_with_issue
        await async_client.post(f"/api/v1/issues/{issue.id}/articles", json={"article_ids": [article.id]})

        response = await async_client.get(f"/api/v1/volumes/{volume.id}")

        assert response.status_code == 200
        issues = response.json()["issues"]
        assert [(i["issue_number"], i["article_count"]) for i in issues] == [(2, 1)]

    async def test_update_volume(self, async_client: AsyncClient, volume_with_issue):
        volume, _ = volume_with_issue

        response = await async_client.put(f"/api/v1/volumes/{volume.id}", json={"year": 2026})

        assert response.status_code == 200
        assert response.json()["year"] == 2026
        assert response.json()["volume_number"] == 5

    async def test_delete_volume_detaches_articles(
        self, async_client: AsyncClient, volume_with_issue, article: Article
    ):
        volume, issue = volume_with_issue
        await async_client.post(f"/api/v1/issues/{issue.id}/articles", json={"article_ids": [article.id]})

        response = await async_client.delete(f"/api/v1/volumes/{volume.id}")

        assert response.status_code == 204
        assert (await async_client.get(f"/api/v1/issues/{issue.id}")).status_code == 404
        detail = (await async_client.get(f"/api/v1/articles/{article.id}")).json()
        assert detail["issue_id"] is None


class TestIssues:
    async def test_create_issue(self, async_client: AsyncClient, volume_with_issue):
        volume, _ = volume_with_issue

        response = await async_client.post(
            "/api/v1/issues", json={"volume_id": volume.id, "issue_number": 3, "title": "Fall"}
        )

        assert response.status_code == 201
        assert response.json()["title"] == "Fall"

    async def test_duplicate_issue_number(self, async_client: AsyncClient, volume_with_issue):
        volume, _ = volume_with_issue

        response = await async_client.post(
            "/api/v1/issues", json={"volume_id": volume.id, "issue_number": 2}
        )
        assert response.status_code == 409

    async def test_issue_in_unknown_volume(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/issues", json={"volume_id": str(uuid4()), "issue_number": 1}
        )
        assert response.status_code == 404

    async def test_assign_articles_sets_legacy_numbers(
        self, async_client: AsyncClient, volume_with_issue, article: Article
    ):
        _, issue = volume_with_issue

        response = await async_client.post(
            f"/api/v1/issues/{issue.id}/articles", json={"article_ids": [article.id]}
        )

        assert response.json() == {"assigned": 1}
        detail = (await async_client.get(f"/api/v1/articles/{article.id}")).json()
        assert detail["issue_id"] == issue.id
        assert (detail["volume"], detail["issue"]) == (5, 2)
        assert detail["publication_issue"]["title"] == "Spring"

        listed = (await async_client.get(f"/api/v1/issues/{issue.id}/articles")).json()
        assert [a["id"] for a in listed] == [article.id]

    async def test_delete_issue(self, async_client: AsyncClient, volume_with_issue):
        _, issue = volume_with_issue

        response = await async_client.delete(f"/api/v1/issues/{issue.id}")

        assert response.status_code == 204
        assert (await async_client.get(f"/api/v1/issues/{issue.id}")).status_code == 404


class TestLegacyMigration:
    async def test_migrate_creates_volumes_and_links(
        self, async_client: AsyncClient, db_session: AsyncSession, author: Author, volume_with_issue
    ):
        _, existing_issue = volume_with_issue
        db_session.add_all(
            [
                Article(id=str(uuid4()), author_id=author.id, title="A", volume=5, issue=2),
                Article(id=str(uuid4()), author_id=author.id, title="B", volume=6, issue=1),
                Article(id=str(uuid4()), author_id=author.id, title="C", volume=6, issue=1),
                Article(id=str(uuid4()), author_id=author.id, title="D"),
            ]
        )
        await db_session.commit()

        response = await async_client.post("/api/v1/volumes/migrate-legacy")

        assert response.status_code == 200
        assert response.json() == {"volumes_created": 1, "issues_created": 1, "articles_linked": 3}

        existing = (await async_client.get(f"/api/v1/issues/{existing_issue.id}/articles")).json()
        assert [a["title"] for a in existing] == ["A"]

        again = await async_client.post("/api/v1/volumes/migrate-legacy")
        assert again.json() == {"volumes_created": 0, "issues_created": 0, "articles_linked": 0}


class TestSavedViews:
    async def test_crud(self, async_client: AsyncClient):
        created = await async_client.post(
            "/api/v1/saved-views",
            json={"name": " Pending ", "status": "Pending Review", "sort_order": "asc"},
        )
        assert created.status_code == 201
        view = created.json()
        assert view["name"] == "Pending"

        updated = await async_client.put(
            f"/api/v1/saved-views/{view['id']}", json={"view_mode": "board"}
        )
        assert updated.json()["view_mode"] == "board"
        assert updated.json()["status"] == "Pending Review"

        deleted = await async_client.delete(f"/api/v1/saved-views/{view['id']}")
        assert deleted.status_code == 204
        assert (await async_client.get(f"/api/v1/saved-views/{view['id']}")).status_code == 404

    async def test_single_default(self, async_client: AsyncClient):
        first = (await async_client.post("/api/v1/saved-views", json={"name": "A", "is_default": True})).json()
        await async_client.post("/api/v1/saved-views", json={"name": "B", "is_default": True})

        views = (await async_client.get("/api/v1/saved-views")).json()

        assert [(v["name"], v["is_default"]) for v in views] == [("B", True), ("A", False)]
        assert (await async_client.get(f"/api/v1/saved-views/{first['id']}")).json()["is_default"] is False

    async def test_invalid_view_mode(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/saved-views", json={"name": "X", "view_mode": "grid"})
        assert response.status_code == 422
