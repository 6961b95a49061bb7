"""
API request and response schemas.
"""

from .articles import (
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdateRequest,
    AttachmentResponse,
    StatusUpdateRequest,
)
from .authors import (
    AuthorCreateRequest,
    AuthorDetailResponse,
    AuthorListResponse,
    AuthorResponse,
    AuthorUpdateRequest,
)
from .submissions import SubmissionRequest, SubmissionResponse

__all__ = [
    "ArticleCreateRequest",
    "ArticleListResponse",
    "ArticleResponse",
    "ArticleUpdateRequest",
    "AttachmentResponse",
    "StatusUpdateRequest",
    "AuthorCreateRequest",
    "AuthorDetailResponse",
    "AuthorListResponse",
    "AuthorResponse",
    "AuthorUpdateRequest",
    "SubmissionRequest",
    "SubmissionResponse",
]
