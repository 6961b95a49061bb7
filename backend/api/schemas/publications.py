"""
Volume and issue API schemas.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Volumes
# ============================================================================


class VolumeCreateRequest(BaseModel):
    volume_number: int = Field(..., ge=1)
    year: int | None = Field(None, ge=1900, le=2200)
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None


class VolumeUpdateRequest(BaseModel):
    volume_number: int | None = Field(None, ge=1)
    year: int | None = Field(None, ge=1900, le=2200)
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None


class IssueResponse(BaseModel):
    id: str
    volume_id: str
    issue_number: int
    title: str | None = None
    release_date: date | None = None
    description: str | None = None
    article_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VolumeResponse(BaseModel):
    id: str
    volume_number: int
    year: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None
    issues: list[IssueResponse] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Issues
# ============================================================================


class IssueCreateRequest(BaseModel):
    volume_id: str
    issue_number: int = Field(..., ge=1)
    title: str | None = Field(None, max_length=500)
    release_date: date | None = None
    description: str | None = None


class IssueUpdateRequest(BaseModel):
    issue_number: int | None = Field(None, ge=1)
    title: str | None = Field(None, max_length=500)
    release_date: date | None = None
    description: str | None = None


class AssignArticlesRequest(BaseModel):
    article_ids: list[str] = Field(..., min_length=1, max_length=500)


class LegacyMigrationResponse(BaseModel):
    volumes_created: int
    issues_created: int
    articles_linked: int
