"""
Service layer for business logic.

Services take an AsyncSession (and a StorageAdapter where files are
involved) and flush their changes; routes own the commit.
"""

from services.analytics import AnalyticsService
from services.articles import ArticleService
from services.attachments import AttachmentService
from services.authors import AuthorService
from services.backup import BackupService
from services.duplicates import DuplicateFileService
from services.exports import ExportService
from services.legacy_import import SharePointImportService
from services.payments import PaymentService
from services.publications import PublicationService
from services.saved_views import SavedViewService
from services.submissions import SubmissionService

__all__ = [
    "AnalyticsService",
    "ArticleService",
    "AttachmentService",
    "AuthorService",
    "BackupService",
    "DuplicateFileService",
    "ExportService",
    "PaymentService",
    "PublicationService",
    "SavedViewService",
    "SharePointImportService",
    "SubmissionService",
]
