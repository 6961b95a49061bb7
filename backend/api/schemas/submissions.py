"""
Submission webhook schemas.

The form automation posts camelCase JSON; snake_case names are accepted too.
"""

import base64
import binascii
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from infrastructure.database.models import (
    ArticleTier,
    AttachmentType,
    ContributorRole,
    MultimediaType,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmissionAuthor(_CamelModel):
    """Author block of a submission."""

    given_name: str = Field(..., min_length=1, max_length=255)
    surname: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: ContributorRole = ContributorRole.GUEST_CONTRIBUTOR


class SubmissionAttachment(_CamelModel):
    """Base64-encoded file sent with a submission."""

    name: str = Field(..., min_length=1, max_length=500)
    type: AttachmentType
    content: str = Field(..., description="Base64 encoded file content")
    mime_type: str | None = None
    caption: str | None = None
    photo_number: int | None = Field(None, ge=1)

    @field_validator("content")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("content must be valid base64")
        return v

    def decoded(self) -> bytes:
        return base64.b64decode(self.content)


class SubmissionRequest(_CamelModel):
    """Article submission posted by the intake form."""

    title: str = Field(..., min_length=1, max_length=500)
    article_tier: ArticleTier
    author: SubmissionAuthor

    prefers_anonymity: bool = False
    auto_deposit_available: bool = False
    etransfer_email: EmailStr | None = None

    multimedia_types: list[MultimediaType] = Field(default_factory=list)

    form_response_id: str | None = Field(None, max_length=255)
    submitted_at: datetime | None = None

    attachments: list[SubmissionAttachment] = Field(default_factory=list)


class SubmissionResponse(BaseModel):
    """Webhook result."""

    success: bool = True
    message: str = "Article submission received"
    article_id: str
    author_id: str
    attachment_ids: list[str] = Field(default_factory=list)
