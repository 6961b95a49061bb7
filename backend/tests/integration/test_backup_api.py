"""Integration tests for backup export and restore."""
import io
import json
import zipfile

import pytest
from httpx import AsyncClient

from infrastructure.database.models import Article

pytestmark = pytest.mark.asyncio


async def _export(client: AsyncClient) -> bytes:
    response = await client.get("/api/v1/backup/export")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert "otemanager-backup-" in response.headers["content-disposition"]
    return response.content


async def _import(client: AsyncClient, content: bytes, **form) -> dict:
    response = await client.post(
        "/api/v1/backup/import",
        files={"backup": ("backup.zip", content, "application/zip")},
        data=form,
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestBackupExport:
    async def test_export_contains_manifest_and_files(
        self, async_client: AsyncClient, article: Article, png_bytes: bytes
    ):
        upload = await async_client.post(
            f"/api/v1/articles/{article.id}/attachments",
            files={"file": ("p.png", png_bytes, "image/png")},
            data={"kind": "photo"},
        )
        path = upload.json()["file_path"]

        archive = zipfile.ZipFile(io.BytesIO(await _export(async_client)))
        manifest = json.loads(archive.read("manifest.json"))

        assert manifest["exportVersion"] == "1.0"
        assert manifest["counts"]["articles"] == 1
        assert manifest["counts"]["attachments"] == 1
        assert manifest["data"]["articles"][0]["title"] == "Campus Garden Grows"
        assert manifest["data"]["paymentConfig"] is None
        assert archive.read(f"files/{path}") == png_bytes


class TestBackupImport:
    async def test_merge_restores_deleted_rows(self, async_client: AsyncClient, article: Article):
        await async_client.post(f"/api/v1/articles/{article.id}/notes", json={"content": "keep me"})
        content = await _export(async_client)
        await async_client.delete(f"/api/v1/articles/{article.id}")

        result = await _import(async_client, content, mode="merge")

        assert result["success"] is True
        assert result["stats"]["articles"] == {"imported": 1, "skipped": 0}
        assert result["stats"]["authors"] == {"imported": 0, "skipped": 1}
        assert result["stats"]["notes"]["imported"] == 1
        assert result["backup_info"]["version"] == "1.0"

        detail = (await async_client.get(f"/api/v1/articles/{article.id}")).json()
        assert detail["title"] == "Campus Garden Grows"
        assert [n["content"] for n in detail["notes"]] == ["keep me"]

    async def test_replace_clears_existing_data(self, async_client: AsyncClient, article: Article):
        content = await _export(async_client)
        await async_client.post(
            "/api/v1/authors", json={"given_name": "New", "surname": "Person", "email": "new@example.com"}
        )

        result = await _import(async_client, content, mode="replace")

        assert result["stats"]["authors"]["imported"] == 1
        emails = [a["email"] for a in (await async_client.get("/api/v1/authors")).json()["items"]]
        assert emails == ["jane.doe@example.com"]

    async def test_files_only_restore(
        self, async_client: AsyncClient, article: Article, png_bytes: bytes, storage
    ):
        upload = await async_client.post(
            f"/api/v1/articles/{article.id}/attachments",
            files={"file": ("p.png", png_bytes, "image/png")},
            data={"kind": "photo"},
        )
        path = upload.json()["file_path"]
        content = await _export(async_client)
        await storage.delete(path)

        result = await _import(async_client, content, type="files")

        assert result["stats"]["attachments"]["files_restored"] == 1
        assert result["stats"]["articles"]["imported"] == 0
        assert await storage.get_file(path) == png_bytes

    async def test_invalid_mode(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/backup/import",
            files={"backup": ("backup.zip", b"x", "application/zip")},
            data={"mode": "overwrite"},
        )
        assert response.status_code == 400

    async def test_not_a_zip(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/backup/import",
            files={"backup": ("backup.zip", b"not a zip", "application/zip")},
        )

        assert response.status_code == 400
        assert "ZIP" in response.json()["detail"]

    async def test_missing_manifest(self, async_client: AsyncClient):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("readme.txt", "hello")

        response = await async_client.post(
            "/api/v1/backup/import",
            files={"backup": ("backup.zip", buffer.getvalue(), "application/zip")},
        )

        assert response.status_code == 400
        assert "manifest.json" in response.json()["detail"]
