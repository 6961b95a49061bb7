"""
SQLAlchemy database models.
"""

from .article import (
    Article,
    ArticleMultimediaType,
    ArticleNote,
    ArticleTier,
    AutomationStatus,
    InternalStatus,
    MultimediaType,
    StatusHistory,
)
from .attachment import Attachment, AttachmentType
from .author import Author, AuthorType, ContributorRole, StudentType
from .base import Base, TimestampMixin
from .payment import PaymentRateConfig, PaymentRateHistory
from .publication import Issue, Volume
from .saved_view import SavedArticleView

__all__ = [
    "Base",
    "TimestampMixin",
    "Author",
    "AuthorType",
    "StudentType",
    "ContributorRole",
    "Article",
    "ArticleTier",
    "InternalStatus",
    "AutomationStatus",
    "MultimediaType",
    "ArticleMultimediaType",
    "ArticleNote",
    "StatusHistory",
    "Attachment",
    "AttachmentType",
    "PaymentRateConfig",
    "PaymentRateHistory",
    "Volume",
    "Issue",
    "SavedArticleView",
]
