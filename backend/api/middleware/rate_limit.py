"""
Rate limiting using slowapi.

Limits are keyed by the real client IP. Redis is used as the limiter store
when REDIS_URL is configured, otherwise an in-process memory store.

Rate Limits:
- Submission webhook: 30 requests per minute
- File uploads: 30 requests per minute
- Backup import / SharePoint import: 5 requests per hour
- Backup export: 10 requests per hour
- Default: 100 requests per minute
"""

import ipaddress
import logging
import re

from starlette.requests import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Quick reject before parsing
_IP_LIKE = re.compile(r"^[\d.:a-fA-F]+$")


def _is_valid_ip(value: str) -> bool:
    """Return True if *value* looks like a valid IPv4 or IPv6 address."""
    if not _IP_LIKE.match(value):
        return False
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def _is_private_ip(value: str) -> bool:
    """Return True if *value* is a private, loopback, or link-local address.

    Private addresses in X-Forwarded-For can be spoofed to share or dodge a bucket.
    """
    try:
        addr = ipaddress.ip_address(value)
        return addr.is_private or addr.is_loopback or addr.is_link_local
    except ValueError:
        return False


def _get_real_ip(request: Request) -> str:
    """Extract the client IP from proxy headers, falling back to the remote address.

    Only public, well-formed addresses from X-Forwarded-For / X-Real-IP are
    trusted; anything else falls back to the connection address.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # First entry is the client
        candidate = forwarded.split(",")[0].strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        candidate = real_ip.strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    return get_remote_address(request)


# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "submission": "30/minute",
    "upload": "30/minute",
    "backup_export": "10/hour",
    "backup_import": "5/hour",
    "sharepoint_import": "5/hour",
    "default": "100/minute",
}

_storage_uri = settings.redis_url if settings.redis_url else "memory://"

if not settings.redis_url:
    logger.warning(
        "Rate limiter using in-memory storage - not suitable for multi-worker production"
    )
    if settings.environment == "production":
        logger.critical(
            "Rate limiter has no Redis in production; limits are per worker. "
            "Set REDIS_URL in environment variables."
        )

limiter = Limiter(
    key_func=_get_real_ip,
    storage_uri=_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """
    Get rate limit configuration for a specific endpoint.

    Example:
        >>> get_rate_limit("submission")
        "30/minute"
        >>> get_rate_limit("unknown")
        "100/minute"
    """
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
