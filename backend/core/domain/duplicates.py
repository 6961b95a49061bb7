"""Duplicate detection for attachments and article submissions."""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

# Files at or below this size are too small to compare by size alone
SIZE_MATCH_MIN_BYTES = 1024


class MatchType(str, Enum):
    EXACT = "exact"
    SIMILAR = "similar"
    SIZE = "size"


MATCH_LABELS = {
    MatchType.EXACT: "Exact filename match",
    MatchType.SIMILAR: "Same name, different extension",
    MatchType.SIZE: "Same file size (possibly identical)",
}


@dataclass
class DuplicateGroup:
    key: str
    match_type: MatchType
    files: list[Any] = field(default_factory=list)

    @property
    def label(self) -> str:
        return MATCH_LABELS[self.match_type]


@dataclass
class DuplicateReport:
    total_files: int
    groups: list[DuplicateGroup]

    @property
    def total_duplicates(self) -> int:
        return sum(len(g.files) - 1 for g in self.groups)


def normalize_file_name(file_name: str) -> str:
    """Strip the extension, lowercase, and collapse separators to "_"."""
    dot = file_name.rfind(".")
    base = file_name[:dot] if dot > 0 else file_name
    return re.sub(r"[_\-\s]+", "_", base.lower()).strip()


def _extension(file_name: str) -> str:
    dot = file_name.rfind(".")
    return file_name[dot:].lower() if dot > 0 else ""


def find_duplicate_files(attachments: Sequence[Any]) -> DuplicateReport:
    """
    Group attachments that are probably duplicates of each other.

    Three passes run in order of confidence; an attachment claimed by an
    earlier pass is never placed in a later group.

    1. Exact original filename (case-insensitive).
    2. Same normalized base name with differing extensions.
    3. Same size (> 1 KB) within the same article.

    Args:
        attachments: Objects with id, article_id, original_file_name and file_size

    Returns:
        DuplicateReport with the groups and file totals
    """
    by_exact: dict[str, list] = {}
    by_normalized: dict[str, list] = {}
    by_size: dict[str, list] = {}

    for att in attachments:
        by_exact.setdefault(att.original_file_name.lower(), []).append(att)
        by_normalized.setdefault(normalize_file_name(att.original_file_name), []).append(att)
        if att.file_size and att.file_size > SIZE_MATCH_MIN_BYTES:
            by_size.setdefault(f"size_{att.file_size}", []).append(att)

    groups: list[DuplicateGroup] = []
    processed: set[str] = set()

    def _claim(files: Iterable) -> None:
        processed.update(f.id for f in files)

    for key, files in by_exact.items():
        unprocessed = [f for f in files if f.id not in processed]
        if len(unprocessed) > 1:
            groups.append(DuplicateGroup(f"exact_{key}", MatchType.EXACT, unprocessed))
            _claim(unprocessed)

    for key, files in by_normalized.items():
        unprocessed = [f for f in files if f.id not in processed]
        if len(unprocessed) > 1:
            extensions = {_extension(f.original_file_name) for f in unprocessed}
            if len(extensions) > 1:
                groups.append(DuplicateGroup(f"similar_{key}", MatchType.SIMILAR, unprocessed))
                _claim(unprocessed)

    for key, files in by_size.items():
        unprocessed = [f for f in files if f.id not in processed]
        if len(unprocessed) < 2:
            continue
        by_article: dict[str, list] = {}
        for f in unprocessed:
            by_article.setdefault(f.article_id, []).append(f)
        for article_id, article_files in by_article.items():
            if len(article_files) > 1:
                groups.append(
                    DuplicateGroup(f"size_{key}_{article_id}", MatchType.SIZE, article_files)
                )
                _claim(article_files)

    return DuplicateReport(total_files=len(attachments), groups=groups)


def normalize_title(title: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (title or "").lower()).strip()


def article_duplicate_key(title: Optional[str], author_email: Optional[str]) -> str:
    """Articles with the same normalized title and author email are duplicates."""
    return f"{normalize_title(title)}|{(author_email or '').lower()}"


def find_duplicate_articles(articles: Sequence[Any]) -> list[list[Any]]:
    """Group articles sharing a duplicate key. Expects ``article.author`` loaded."""
    groups: dict[str, list] = {}
    for article in articles:
        email = article.author.email if article.author else None
        groups.setdefault(article_duplicate_key(article.title, email), []).append(article)
    return [g for g in groups.values() if len(g) > 1]
