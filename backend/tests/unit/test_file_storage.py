"""
Tests for file storage adapters.
"""

import io
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from adapters.storage.file_storage import (
    LocalStorageAdapter,
    S3StorageAdapter,
    get_mime_type,
    get_storage_adapter,
    normalize_storage_path,
    sanitize_filename,
    unique_filename,
)
from core.exceptions import StorageError


class TestHelpers:
    def test_sanitize_filename(self):
        assert sanitize_filename("my file (1).docx") == "my_file_1_.docx"

    def test_unique_filename_keeps_extension(self):
        name = unique_filename("../Report Final.docx")

        assert name.startswith("Report_Final_")
        assert name.endswith(".docx")
        assert "/" not in name

    def test_mime_type(self):
        assert get_mime_type("a.JPG") == "image/jpeg"
        assert get_mime_type("a.unknown") == "application/octet-stream"

    @pytest.mark.parametrize("path", ["", "/etc/passwd", "../secret", "a/../../b"])
    def test_normalize_rejects_traversal(self, path):
        with pytest.raises(StorageError):
            normalize_storage_path(path)

    def test_normalize_converts_backslashes(self):
        assert normalize_storage_path("articles\\x\\a.jpg") == "articles/x/a.jpg"


class TestLocalStorageAdapter:
    """Tests for LocalStorageAdapter."""

    @pytest.fixture
    def adapter(self, tmp_path):
        return LocalStorageAdapter(base_path=str(tmp_path / "uploads"))

    @pytest.mark.asyncio
    async def test_upload_and_read(self, adapter):
        stored = await adapter.upload(b"hello", "note.txt", "articles/a1/documents")

        assert stored.path.startswith("articles/a1/documents/note_")
        assert stored.size == 5
        assert stored.mime_type == "text/plain"
        assert await adapter.get_file(stored.path) == b"hello"
        assert await adapter.exists(stored.path)

    @pytest.mark.asyncio
    async def test_missing_file_returns_none(self, adapter):
        assert await adapter.get_file("nope/missing.txt") is None
        assert await adapter.exists("nope/missing.txt") is False

    @pytest.mark.asyncio
    async def test_delete(self, adapter):
        await adapter.save_file("x/y.txt", b"data")

        assert await adapter.delete("x/y.txt") is True
        assert await adapter.delete("x/y.txt") is False

    @pytest.mark.asyncio
    async def test_traversal_is_rejected(self, adapter):
        with pytest.raises(StorageError):
            await adapter.save_file("../escape.txt", b"x")
        assert await adapter.exists("../escape.txt") is False

    def test_get_url(self, adapter):
        assert adapter.get_url("articles/a.jpg") == "/api/v1/files/articles/a.jpg"


class TestS3StorageAdapter:
    """Tests for S3StorageAdapter with a mocked boto3 client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def adapter(self, client):
        return S3StorageAdapter(bucket="bucket", region="us-east-1", client=client)

    @pytest.mark.asyncio
    async def test_upload_puts_object(self, adapter, client):
        stored = await adapter.upload(b"img", "pic.png", "articles/a1/photos")

        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "bucket"
        assert kwargs["Key"] == stored.path
        assert kwargs["ContentType"] == "image/png"

    @pytest.mark.asyncio
    async def test_get_file(self, adapter, client):
        client.get_object.return_value = {"Body": io.BytesIO(b"abc")}
        assert await adapter.get_file("k") == b"abc"

    @pytest.mark.asyncio
    async def test_get_missing_file(self, adapter, client):
        client.get_object.side_effect = ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        assert await adapter.get_file("k") is None

    @pytest.mark.asyncio
    async def test_get_file_error_raises(self, adapter, client):
        client.get_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "GetObject")
        with pytest.raises(StorageError):
            await adapter.get_file("k")

    @pytest.mark.asyncio
    async def test_missing_credentials(self, adapter, client):
        client.put_object.side_effect = NoCredentialsError()
        with pytest.raises(StorageError):
            await adapter.save_file("k.txt", b"x")

    @pytest.mark.asyncio
    async def test_exists(self, adapter, client):
        client.head_object.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadObject")
        assert await adapter.exists("k") is False

    @pytest.mark.asyncio
    async def test_delete_without_bucket(self, adapter, client):
        adapter.bucket = None

        assert await adapter.delete("k") is False
        client.delete_object.assert_not_called()


class TestGetStorageAdapter:
    def test_local_by_default(self):
        with patch("adapters.storage.file_storage.settings") as mock_settings:
            mock_settings.storage_type = "local"
            mock_settings.storage_local_path = "/tmp/uploads"
            assert isinstance(get_storage_adapter(), LocalStorageAdapter)

    def test_s3(self):
        with patch("adapters.storage.file_storage.settings") as mock_settings, patch(
            "adapters.storage.file_storage.boto3"
        ):
            mock_settings.storage_type = "s3"
            mock_settings.s3_bucket = "bucket"
            mock_settings.s3_endpoint = None
            assert isinstance(get_storage_adapter(), S3StorageAdapter)
