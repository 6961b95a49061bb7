"""
Shared API utility functions.
"""

from urllib.parse import quote


def escape_like(value: str) -> str:
    """Escape LIKE wildcards for safe use in SQL LIKE/ILIKE patterns."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and the UTF-8 name for browsers that support it."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def reject_explicit_nulls(model, fields: tuple[str, ...]) -> None:
    """Raise ValueError when a partial-update body sends null for a required column."""
    nulls = [name for name in fields if name in model.model_fields_set and getattr(model, name) is None]
    if nulls:
        raise ValueError(f"{', '.join(nulls)} cannot be null")
