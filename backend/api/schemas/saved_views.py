"""
Saved article-view schemas.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SavedViewCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    is_default: bool = False
    status: str | None = Field(None, max_length=50)
    tier: str | None = Field(None, max_length=50)
    search: str | None = Field(None, max_length=255)
    sort_by: str | None = Field(None, max_length=50)
    sort_order: Literal["asc", "desc"] | None = None
    view_mode: Literal["list", "board", "issue"] | None = None


class SavedViewUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    is_default: bool | None = None
    status: str | None = Field(None, max_length=50)
    tier: str | None = Field(None, max_length=50)
    search: str | None = Field(None, max_length=255)
    sort_by: str | None = Field(None, max_length=50)
    sort_order: Literal["asc", "desc"] | None = None
    view_mode: Literal["list", "board", "issue"] | None = None


class SavedViewResponse(BaseModel):
    id: str
    name: str
    is_default: bool
    status: str | None = None
    tier: str | None = None
    search: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    view_mode: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
