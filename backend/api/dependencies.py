"""
API dependencies: storage backend and webhook authentication.
"""

import hmac
from typing import Optional

from fastapi import Header, HTTPException, status

from adapters.storage import StorageAdapter, storage_adapter
from infrastructure.config.settings import settings


def get_storage() -> StorageAdapter:
    """Storage adapter for the request. Overridden in tests."""
    return storage_adapter


async def verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(None, alias="X-Webhook-Secret"),
) -> None:
    """
    Check the X-Webhook-Secret header when WEBHOOK_SECRET is configured.

    Compared in constant time. Without a configured secret the webhook is open.
    """
    expected = settings.webhook_secret
    if not expected:
        return
    if not x_webhook_secret or not hmac.compare_digest(
        x_webhook_secret.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
