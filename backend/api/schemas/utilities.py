"""
Utility endpoint schemas: duplicate files, exports, backups and imports.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, Field, model_validator


class DuplicateFileItem(BaseModel):
    id: str
    article_id: str
    article_title: str | None = None
    file_name: str
    original_file_name: str
    file_path: str
    file_size: int
    attachment_type: str


class DuplicateGroupResponse(BaseModel):
    key: str
    match_type: str
    label: str
    files: list[DuplicateFileItem]


class DuplicateReportResponse(BaseModel):
    total_files: int
    duplicate_groups: int
    total_duplicates: int
    groups: list[DuplicateGroupResponse]


class DeleteFilesRequest(BaseModel):
    attachment_ids: list[str] = Field(..., min_length=1, max_length=1000)


class DeleteFilesResponse(BaseModel):
    deleted: int


class WordPressExportRequest(BaseModel):
    volume_id: str = Field(..., min_length=1)
    issue_ids: list[str] = Field(..., min_length=1)
    include_photos: bool = False


class BackupImportResponse(BaseModel):
    success: bool = True
    message: str = "Backup restored successfully"
    stats: dict[str, dict[str, int]]
    backup_info: dict[str, str | None]


class SharePointImportResponse(BaseModel):
    success: bool = True
    preview: bool = False
    stats: dict
    message: str | None = None


class StudentTypeUpdateRequest(BaseModel):
    """SharePoint list items: a bare array, {"articles": [...]} or the REST {"value": [...]} shape."""

    articles: list[dict[str, Any]] = Field(
        ..., min_length=1, validation_alias=AliasChoices("articles", "value")
    )

    @model_validator(mode="before")
    @classmethod
    def wrap_bare_list(cls, data: Any) -> Any:
        return {"articles": data} if isinstance(data, list) else data


class StudentTypeUpdateResponse(BaseModel):
    updated: int
    skipped: int
    not_found: int
    errors: list[str]
    details: list[str]
