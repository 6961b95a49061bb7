"""Storage adapters for article attachments."""

from .file_storage import (
    LocalStorageAdapter,
    S3StorageAdapter,
    StorageAdapter,
    StoredFile,
    get_mime_type,
    get_storage_adapter,
    sanitize_filename,
    storage_adapter,
)

__all__ = [
    "StorageAdapter",
    "StoredFile",
    "LocalStorageAdapter",
    "S3StorageAdapter",
    "get_mime_type",
    "get_storage_adapter",
    "sanitize_filename",
    "storage_adapter",
]
