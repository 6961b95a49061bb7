"""Logging setup: JSON lines in production, plain text elsewhere, credentials scrubbed."""

import json
import logging
import re
import sys
from datetime import UTC, datetime

# Webhook secrets, storage keys and passwords never reach a handler
_REDACTIONS = [
    (re.compile(r"(X-Webhook-Secret[\"':\s=]+)[^\s,\"'}]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(webhook_secret[\"':\s=]+)[^\s,\"'}]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(s3_secret_key[\"':\s=]+)[^\s,\"'}]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(aws_secret_access_key[\"':\s=]+)[^\s,\"'}]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"AKIA[0-9A-Z]{16}"), "[REDACTED_AWS_KEY]"),
    (re.compile(r"(password[\"':\s=]+)[^\s,\"'}]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(postgres(?:ql)?(?:\+asyncpg)?://[^:/\s]+:)[^@\s]+@"), r"\1[REDACTED]@"),
]

# Structured fields passed through `extra=` by routes, middleware and services
EXTRA_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "article_id",
    "attachment_id",
    "author_id",
    "import_mode",
)


def redact(value: str) -> str:
    for pattern, replacement in _REDACTIONS:
        value = pattern.sub(replacement, value)
    return value


class SensitiveDataFilter(logging.Filter):
    """Scrubs credentials from the message template and any string arguments."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(redact(a) if isinstance(a, str) else a for a in record.args)
        elif isinstance(record.args, dict):
            record.args = {k: redact(v) if isinstance(v, str) else v for k, v in record.args.items()}
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)})
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines; the request id is appended when the record carries one."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        request_id = getattr(record, "request_id", None)
        return f"{line} [{request_id}]" if request_id else line


def setup_logging(json_output: bool = False, level: str = "INFO") -> None:
    """
    Configure the root logger.

    Args:
        json_output: JSON lines (production) instead of plain text.
        level: Log level name.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
    # On the handler so records propagated from child loggers are scrubbed too
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)

    for name, lib_level in (
        ("uvicorn.access", logging.INFO),
        ("botocore", logging.WARNING),
        ("boto3", logging.WARNING),
        ("multipart", logging.WARNING),
        ("sqlalchemy.engine", logging.WARNING),
        ("httpx", logging.WARNING),
    ):
        logging.getLogger(name).setLevel(lib_level)
