"""
File storage adapters for local and S3 storage.

Provides an abstract base class and concrete implementations for storing
article attachments (Word documents, photos) and restored backup files
on the local filesystem or in S3-compatible object storage.
"""

import logging
import os
import re
import secrets
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

import aiofiles
import aiofiles.os
import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError, NoCredentialsError

from core.exceptions import StorageError
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

FILES_URL_PREFIX = "/api/v1/files"

MIME_TYPES = {
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".mp4": "video/mp4",
    ".mp3": "audio/mpeg",
}

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class StoredFile:
    """Result of an upload."""

    name: str
    path: str
    size: int
    mime_type: str


def get_mime_type(filename: str) -> str:
    """Map a filename's extension to a MIME type."""
    return MIME_TYPES.get(os.path.splitext(filename)[1].lower(), "application/octet-stream")


def sanitize_filename(filename: str) -> str:
    """Replace unsafe characters with "_" and cap the length at 255."""
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "_", filename)
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    return cleaned[:255]


def unique_filename(filename: str) -> str:
    """
    Build a collision-resistant filename.

    Args:
        filename: Original filename

    Returns:
        "{sanitized_stem}_{millis}_{random6}{ext}"
    """
    filename = os.path.basename(filename)
    stem, ext = os.path.splitext(filename)
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(6))
    return f"{sanitize_filename(stem)}_{timestamp}_{suffix}{ext}"


def normalize_storage_path(path: str) -> str:
    """
    Normalize a relative storage path and reject traversal.

    Raises:
        StorageError: If the path is absolute or escapes the storage root
    """
    normalized = path.replace("\\", "/").strip()
    posix = PurePosixPath(normalized)
    if not normalized or posix.is_absolute() or ".." in posix.parts:
        raise StorageError(f"Invalid storage path: {path!r}")
    return str(posix)


class StorageAdapter(ABC):
    """Abstract base class for storage adapters."""

    @abstractmethod
    async def upload(self, data: bytes, filename: str, directory: str) -> StoredFile:
        """
        Store data under directory with a unique filename.

        Args:
            data: Raw file bytes
            filename: Original filename (will be sanitized)
            directory: Relative target directory

        Returns:
            StoredFile describing the stored object
        """

    @abstractmethod
    async def get_file(self, path: str) -> Optional[bytes]:
        """
        Read a stored file.

        Args:
            path: Relative storage path

        Returns:
            File bytes, or None if the file does not exist
        """

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete a stored file.

        Returns:
            True if deleted successfully, False otherwise
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a file exists."""

    @abstractmethod
    async def save_file(self, path: str, data: bytes) -> None:
        """Write data at an exact path (used when restoring backups and importing)."""

    def get_url(self, path: str) -> str:
        """Get the API URL that serves a stored file."""
        return f"{FILES_URL_PREFIX}/{path}"


class LocalStorageAdapter(StorageAdapter):
    """
    Local filesystem storage adapter.

    Files are kept under base_path using the relative paths stored in the
    database, e.g. articles/<article_id>/photos/photo_1712345678901_ab12cd.jpg
    """

    def __init__(self, base_path: Optional[str] = None):
        """
        Initialize local storage adapter.

        Args:
            base_path: Base directory for uploads (defaults to settings.storage_local_path)
        """
        self.base_path = Path(base_path or settings.storage_local_path).resolve()

    def _full_path(self, path: str) -> Path:
        full = (self.base_path / normalize_storage_path(path)).resolve()
        if full != self.base_path and self.base_path not in full.parents:
            raise StorageError(f"Invalid storage path: {path!r}")
        return full

    async def upload(self, data: bytes, filename: str, directory: str) -> StoredFile:
        name = unique_filename(filename)
        relative = f"{normalize_storage_path(directory)}/{name}"
        await self.save_file(relative, data)
        logger.info("Saved file to local storage: %s", relative)
        return StoredFile(name=name, path=relative, size=len(data), mime_type=get_mime_type(filename))

    async def get_file(self, path: str) -> Optional[bytes]:
        file_path = self._full_path(path)
        if not file_path.is_file():
            return None
        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()

    async def delete(self, path: str) -> bool:
        try:
            file_path = self._full_path(path)
            if file_path.exists():
                await aiofiles.os.remove(file_path)
                logger.info("Deleted file from local storage: %s", path)
                return True
            logger.warning("File not found for deletion: %s", path)
            return False
        except (OSError, StorageError) as e:
            logger.error("Failed to delete file from local storage: %s", e)
            return False

    async def exists(self, path: str) -> bool:
        try:
            return self._full_path(path).is_file()
        except StorageError:
            return False

    async def save_file(self, path: str, data: bytes) -> None:
        file_path = self._full_path(path)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error("Failed to save file to local storage: %s", e)
            raise StorageError(f"Failed to save file: {path}") from e


class S3StorageAdapter(StorageAdapter):
    """
    S3 storage adapter.

    Works with AWS S3 or any S3-compatible store (MinIO, R2) when an
    endpoint is configured; path-style addressing is used in that case.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        endpoint: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        client=None,
    ):
        """
        Initialize S3 storage adapter.

        Args:
            bucket: S3 bucket name (defaults to settings.s3_bucket)
            region: AWS region (defaults to settings.s3_region)
            endpoint: Custom endpoint URL for S3-compatible stores
            access_key: Access key (defaults to settings.s3_access_key)
            secret_key: Secret key (defaults to settings.s3_secret_key)
            client: Pre-built boto3 client (tests)
        """
        self.bucket = bucket or settings.s3_bucket
        self.region = region or settings.s3_region
        self.endpoint = endpoint or settings.s3_endpoint
        self.access_key = access_key or settings.s3_access_key
        self.secret_key = secret_key or settings.s3_secret_key

        if client is not None:
            self.s3_client = client
            return

        kwargs = {"region_name": self.region}
        if self.endpoint:
            kwargs["endpoint_url"] = self.endpoint
            kwargs["config"] = BotoConfig(s3={"addressing_style": "path"})
        if self.access_key and self.secret_key:
            kwargs["aws_access_key_id"] = self.access_key
            kwargs["aws_secret_access_key"] = self.secret_key

        try:
            self.s3_client = boto3.client("s3", **kwargs)
            logger.info("S3 storage adapter initialized for bucket: %s", self.bucket)
        except Exception as e:
            logger.warning("Failed to initialize S3 client: %s", e)
            self.s3_client = None

    def _require_client(self) -> None:
        if not self.s3_client:
            raise StorageError("S3 client not initialized. Check credentials.")
        if not self.bucket:
            raise StorageError("S3 bucket not configured.")

    async def upload(self, data: bytes, filename: str, directory: str) -> StoredFile:
        name = unique_filename(filename)
        key = f"{normalize_storage_path(directory)}/{name}"
        await self.save_file(key, data)
        logger.info("Uploaded file to S3: %s", key)
        return StoredFile(name=name, path=key, size=len(data), mime_type=get_mime_type(filename))

    async def get_file(self, path: str) -> Optional[bytes]:
        self._require_client()
        try:
            response = self.s3_client.get_object(Bucket=self.bucket, Key=path)
            return response["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            logger.error("S3 download failed: %s", e)
            raise StorageError(f"Failed to read from S3: {path}") from e

    async def delete(self, path: str) -> bool:
        if not self.s3_client or not self.bucket:
            logger.warning("S3 not configured, cannot delete file")
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=path)
            logger.info("Deleted file from S3: %s", path)
            return True
        except ClientError as e:
            logger.error("Failed to delete from S3: %s", e)
            return False

    async def exists(self, path: str) -> bool:
        if not self.s3_client or not self.bucket:
            return False
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=path)
            return True
        except ClientError:
            return False

    async def save_file(self, path: str, data: bytes) -> None:
        self._require_client()
        key = normalize_storage_path(path)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=get_mime_type(key),
            )
        except NoCredentialsError as e:
            logger.error("S3 credentials not found")
            raise StorageError("S3 credentials not configured") from e
        except ClientError as e:
            logger.error("S3 upload failed: %s", e)
            raise StorageError(f"Failed to upload to S3: {key}") from e


def get_storage_adapter() -> StorageAdapter:
    """
    Factory function to get the appropriate storage adapter.

    Returns:
        StorageAdapter instance (LocalStorageAdapter or S3StorageAdapter)

    Raises:
        ValueError: If storage_type is not recognized
    """
    storage_type = settings.storage_type.lower()

    if storage_type == "local":
        return LocalStorageAdapter()
    elif storage_type == "s3":
        return S3StorageAdapter()
    else:
        raise ValueError(
            f"Unknown storage type: {storage_type}. Must be 'local' or 's3'"
        )


# Convenience singleton for quick access
storage_adapter = get_storage_adapter()
