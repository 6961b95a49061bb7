"""Integration tests for attachment upload, download, conversion and deletion."""
import pytest
from httpx import AsyncClient
from uuid import uuid4

from infrastructure.database.models import Article

pytestmark = pytest.mark.asyncio

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


async def _upload_docx(client: AsyncClient, article_id: str, data: bytes) -> dict:
    response = await client.post(
        f"/api/v1/articles/{article_id}/attachments",
        files={"file": ("Garden Report.docx", data, DOCX_MIME)},
        data={"kind": "document"},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestUploadAttachment:
    async def test_upload_document(
        self, async_client: AsyncClient, article: Article, docx_bytes: bytes, storage
    ):
        data = await _upload_docx(async_client, article.id, docx_bytes)

        assert data["attachment_type"] == "word_document"
        assert data["original_file_name"] == "Garden Report.docx"
        assert data["file_path"].startswith(f"articles/{article.id}/documents/")
        assert data["url"] == f"/api/v1/files/{data['file_path']}"
        assert await storage.get_file(data["file_path"]) == docx_bytes

        detail = (await async_client.get(f"/api/v1/articles/{article.id}")).json()
        assert detail["article_file_path"] == data["file_path"]

    async def test_upload_photos_are_numbered(
        self, async_client: AsyncClient, article: Article, png_bytes: bytes
    ):
        numbers = []
        for name in ("a.png", "b.png"):
            response = await async_client.post(
                f"/api/v1/articles/{article.id}/attachments",
                files={"file": (name, png_bytes, "image/png")},
                data={"kind": "photo", "caption": f"Caption {name}"},
            )
            assert response.status_code == 201
            numbers.append(response.json()["photo_number"])

        assert numbers == [1, 2]
        listed = (await async_client.get(f"/api/v1/articles/{article.id}/attachments")).json()
        assert [a["caption"] for a in listed] == ["Caption a.png", "Caption b.png"]

    async def test_wrong_type_rejected(self, async_client: AsyncClient, article: Article, png_bytes: bytes):
        response = await async_client.post(
            f"/api/v1/articles/{article.id}/attachments",
            files={"file": ("photo.png", png_bytes, "image/png")},
            data={"kind": "document"},
        )

        assert response.status_code == 400
        assert "Word documents" in response.json()["detail"]

    async def test_empty_file_rejected(self, async_client: AsyncClient, article: Article):
        response = await async_client.post(
            f"/api/v1/articles/{article.id}/attachments",
            files={"file": ("empty.png", b"", "image/png")},
            data={"kind": "photo"},
        )
        assert response.status_code == 400

    async def test_unknown_article(self, async_client: AsyncClient, png_bytes: bytes):
        response = await async_client.post(
            f"/api/v1/articles/{uuid4()}/attachments",
            files={"file": ("photo.png", png_bytes, "image/png")},
            data={"kind": "photo"},
        )
        assert response.status_code == 404


class TestAttachmentOperations:
    async def test_download(self, async_client: AsyncClient, article: Article, docx_bytes: bytes):
        attachment = await _upload_docx(async_client, article.id, docx_bytes)

        response = await async_client.get(f"/api/v1/attachments/{attachment['id']}/download")

        assert response.status_code == 200
        assert response.content == docx_bytes
        assert "Garden Report.docx" in response.headers["content-disposition"]

    @pytest.mark.parametrize(
        "fmt,expected",
        [("markdown", "# Garden Report"), ("html", "<h1>Garden Report</h1>"), ("raw", "Tomatoes and beans.")],
    )
    async def test_convert(
        self, async_client: AsyncClient, article: Article, docx_bytes: bytes, fmt: str, expected: str
    ):
        attachment = await _upload_docx(async_client, article.id, docx_bytes)

        response = await async_client.get(
            f"/api/v1/attachments/{attachment['id']}/convert", params={"format": fmt}
        )

        assert response.status_code == 200
        assert expected in response.text

    async def test_convert_photo_rejected(self, async_client: AsyncClient, article: Article, png_bytes: bytes):
        photo = (
            await async_client.post(
                f"/api/v1/articles/{article.id}/attachments",
                files={"file": ("p.png", png_bytes, "image/png")},
                data={"kind": "photo"},
            )
        ).json()

        response = await async_client.get(f"/api/v1/attachments/{photo['id']}/convert")

        assert response.status_code == 400

    async def test_import_document_into_content(
        self, async_client: AsyncClient, article: Article, docx_bytes: bytes
    ):
        await _upload_docx(async_client, article.id, docx_bytes)

        response = await async_client.post(f"/api/v1/articles/{article.id}/convert")

        assert response.status_code == 200
        assert response.json()["content"].startswith("# Garden Report")

    async def test_import_without_document(self, async_client: AsyncClient, article: Article):
        response = await async_client.post(f"/api/v1/articles/{article.id}/convert")
        assert response.status_code == 404

    async def test_update_caption(self, async_client: AsyncClient, article: Article, png_bytes: bytes):
        photo = (
            await async_client.post(
                f"/api/v1/articles/{article.id}/attachments",
                files={"file": ("p.png", png_bytes, "image/png")},
                data={"kind": "photo"},
            )
        ).json()

        response = await async_client.patch(
            f"/api/v1/attachments/{photo['id']}/caption", json={"caption": "Harvest day"}
        )

        assert response.status_code == 200
        assert response.json()["caption"] == "Harvest day"

    async def test_delete(self, async_client: AsyncClient, article: Article, docx_bytes: bytes, storage):
        attachment = await _upload_docx(async_client, article.id, docx_bytes)

        response = await async_client.delete(f"/api/v1/attachments/{attachment['id']}")

        assert response.status_code == 204
        assert not await storage.exists(attachment["file_path"])
        assert (await async_client.get(f"/api/v1/attachments/{attachment['id']}")).status_code == 404


class TestFiles:
    async def test_serve_stored_file(self, async_client: AsyncClient, storage):
        await storage.save_file("articles/x/photos/p.png", b"png-data")

        response = await async_client.get("/api/v1/files/articles/x/photos/p.png")

        assert response.status_code == 200
        assert response.content == b"png-data"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["cache-control"] == "private, max-age=3600"
        assert response.headers["content-security-policy"] == "default-src 'none'"
        assert "content-disposition" not in response.headers

    async def test_svg_is_served_as_download(self, async_client: AsyncClient, storage):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg"><script>alert(document.cookie)</script></svg>'
        await storage.save_file("articles/x/graphics/logo.svg", svg)

        response = await async_client.get("/api/v1/files/articles/x/graphics/logo.svg")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/svg+xml"
        assert response.headers["content-disposition"] == 'attachment; filename="logo.svg"'
        assert response.headers["content-security-policy"] == "default-src 'none'"
        assert response.headers["x-content-type-options"] == "nosniff"

    async def test_missing_file(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/files/articles/none.png")
        assert response.status_code == 404

    async def test_convert_upload(self, async_client: AsyncClient, docx_bytes: bytes):
        response = await async_client.post(
            "/api/v1/convert/docx",
            params={"format": "markdown"},
            files={"file": ("story.docx", docx_bytes, DOCX_MIME)},
        )

        assert response.status_code == 200
        assert "- Water daily" in response.text

    async def test_convert_upload_rejects_other_extensions(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/convert/docx",
            files={"file": ("story.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400
