"""Integration tests for the SharePoint import endpoint."""
import io
import json
import zipfile

import pytest
from httpx import AsyncClient

from adapters.storage import LocalStorageAdapter
from api.dependencies import get_storage
from core.exceptions import StorageError
from infrastructure.database.models import Author

pytestmark = pytest.mark.asyncio

RECORDS = [
    {
        "Id": 11,
        "Title": "Rowing Team Returns",
        "FileLeafRef": "Rowing Team’s Return",
        "Given_x0020_Name": "Lee",
        "Surname": "Park",
        "Contact_x0020_Email": "Lee.Park@example.com",
        "Article_x0020_Tier": "Tier 2 (Standard)",
        "Internal_x0020_Status": "Accepted",
        "Total_x0020_Payment": "35.00",
        "Payment_x0020_Status": True,
        "Volume": "4",
        "Issue": "1",
        "Multimedia_x0020_Types": "Photo, Video, Other",
        "role": "Graduate",
        "Created": "2023-10-02T15:00:00Z",
        "_images": [{"name": "boat.jpg", "metadata": {"Caption": "At dawn"}}],
    },
    {
        "Id": 12,
        "Title": "No Email Here",
        "Given_x0020_Name": "Anon",
    },
]


def _export_zip(docx_bytes: bytes, records=RECORDS) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("export/items.json", json.dumps(records))
        archive.writestr("export/documents/Rowing Team's Return/story.docx", docx_bytes)
        archive.writestr("export/photos/Rowing Team's Return/boat.jpg", b"jpeg")
    return buffer.getvalue()


async def _post(client: AsyncClient, content: bytes, **form):
    return await client.post(
        "/api/v1/import/sharepoint",
        files={"file": ("export.zip", content, "application/zip")},
        data=form,
    )


class TestSharePointImport:
    async def test_preview_writes_nothing(self, async_client: AsyncClient, docx_bytes: bytes):
        response = await _post(async_client, _export_zip(docx_bytes), preview="true")

        assert response.status_code == 200
        data = response.json()
        assert data["preview"] is True
        assert data["stats"]["articles"] == {"new": 1, "update": 0, "skip": 1}
        assert data["stats"]["files"] == {"documents": 1, "photos": 1}
        assert data["stats"]["article_previews"][0]["author"] == "Lee Park"
        assert (await async_client.get("/api/v1/articles")).json()["total"] == 0

    async def test_import(self, async_client: AsyncClient, docx_bytes: bytes, storage):
        response = await _post(async_client, _export_zip(docx_bytes))

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["articles"] == {"imported": 1, "skipped": 0, "updated": 0}
        assert stats["authors"] == {"imported": 1, "skipped": 0}
        assert stats["attachments"] == {"imported": 2, "skipped": 0}
        assert stats["errors"] == ['Skipping "No Email Here" - no email address']

        listed = (await async_client.get("/api/v1/articles")).json()["items"]
        article = (await async_client.get(f"/api/v1/articles/{listed[0]['id']}")).json()
        assert article["internal_status"] == "Approved"
        assert article["payment_amount"] == 3500
        assert article["payment_is_manual"] is True
        assert article["payment_status"] is True
        assert (article["volume"], article["issue"]) == (4, 1)
        assert article["multimedia_types"] == ["Photo", "Video"]
        assert article["author"]["email"] == "lee.park@example.com"
        assert article["author"]["student_type"] == "Grad"

        photo = next(a for a in article["attachments"] if a["attachment_type"] == "photo")
        assert photo["caption"] == "At dawn"
        assert photo["photo_number"] == 1
        assert await storage.get_file(photo["file_path"]) == b"jpeg"

    async def test_merge_skips_existing(self, async_client: AsyncClient, docx_bytes: bytes):
        content = _export_zip(docx_bytes)
        await _post(async_client, content)

        response = await _post(async_client, content, mode="merge")

        assert response.json()["stats"]["articles"]["skipped"] == 1
        assert (await async_client.get("/api/v1/articles")).json()["total"] == 1

    async def test_replace_updates_without_duplicating_files(
        self, async_client: AsyncClient, docx_bytes: bytes
    ):
        await _post(async_client, _export_zip(docx_bytes))
        changed = [{**RECORDS[0], "Title": "Rowing Team Returns", "Internal_x0020_Status": "Published"}]

        response = await _post(async_client, _export_zip(docx_bytes, changed), mode="replace")

        stats = response.json()["stats"]
        assert stats["articles"]["updated"] == 1
        assert stats["attachments"] == {"imported": 0, "skipped": 2}
        listed = (await async_client.get("/api/v1/articles")).json()["items"]
        assert [a["internal_status"] for a in listed] == ["Published"]

    async def test_existing_author_reused(self, async_client: AsyncClient, docx_bytes: bytes, db_session):
        db_session.add(Author(given_name="Lee", surname="Park", email="lee.park@example.com"))
        await db_session.commit()

        response = await _post(async_client, _export_zip(docx_bytes))

        assert response.json()["stats"]["authors"] == {"imported": 0, "skipped": 1}

    async def test_invalid_mode(self, async_client: AsyncClient, docx_bytes: bytes):
        response = await _post(async_client, _export_zip(docx_bytes), mode="wipe")
        assert response.status_code == 400

    async def test_zip_without_json(self, async_client: AsyncClient):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("readme.txt", "nothing")

        response = await _post(async_client, buffer.getvalue())

        assert response.status_code == 400
        assert response.json()["detail"] == "No JSON file found in ZIP"


def _record(record_id: int, title, folder: str, email: str) -> dict:
    return {
        "Id": record_id,
        "Title": title,
        "FileLeafRef": folder,
        "Given_x0020_Name": "Sam",
        "Surname": "Lee",
        "Contact_x0020_Email": email,
    }


class FailingPhotoStorage(LocalStorageAdapter):
    """Local storage that refuses one file name."""

    async def save_file(self, path: str, data: bytes) -> None:
        if path.endswith("broken.jpg"):
            raise StorageError("disk full")
        await super().save_file(path, data)


class TestRecordIsolation:
    async def test_non_string_title_does_not_abort_batch(self, async_client: AsyncClient):
        records = [
            _record(1, 2024, "Yearbook", "sam@example.com"),
            _record(2, "Good Story", "Good Story", "kim@example.com"),
        ]
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("items.json", json.dumps(records))

        response = await _post(async_client, buffer.getvalue())

        assert response.status_code == 200
        assert response.json()["stats"]["errors"] == []
        titles = sorted(a["title"] for a in (await async_client.get("/api/v1/articles")).json()["items"])
        assert titles == ["2024", "Good Story"]

    async def test_failing_record_is_rolled_back_alone(
        self, async_client: AsyncClient, tmp_path, monkeypatch
    ):
        from main import app

        failing = FailingPhotoStorage(base_path=str(tmp_path / "failing"))
        monkeypatch.setitem(app.dependency_overrides, get_storage, lambda: failing)

        records = [
            _record(1, "Broken Upload", "Broken Upload", "sam@example.com"),
            _record(2, "Good Story", "Good Story", "kim@example.com"),
        ]
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("items.json", json.dumps(records))
            archive.writestr("photos/Broken Upload/broken.jpg", b"jpeg")
            archive.writestr("photos/Good Story/fine.jpg", b"jpeg")

        response = await _post(async_client, buffer.getvalue())

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["errors"] == ['Error importing "Broken Upload": disk full']
        assert stats["articles"]["imported"] == 1
        assert stats["authors"] == {"imported": 1, "skipped": 0}
        assert stats["attachments"] == {"imported": 1, "skipped": 0}

        listed = (await async_client.get("/api/v1/articles")).json()["items"]
        assert [a["title"] for a in listed] == ["Good Story"]
        authors = (await async_client.get("/api/v1/authors")).json()["items"]
        assert [a["email"] for a in authors] == ["kim@example.com"]
