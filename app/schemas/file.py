from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel, Pagination


class StoredFileRead(CamelModel):
    id: UUID
    user_id: str
    original_name: str
    file_name: str
    folder_name: str
    file_type: str
    mime_type: str
    size: int
    url: str
    public_id: str
    storage_folder: str
    uploaded_at: datetime
    updated_at: datetime | None = None


class StoredFileUpdate(CamelModel):
    original_name: str | None = Field(default=None, min_length=1, max_length=255)


class FailedFileInfo(CamelModel):
    original_name: str
    mime_type: str
    size: int


class FailedUpload(CamelModel):
    file: FailedFileInfo
    error: str


class UploadResult(CamelModel):
    success: list[StoredFileRead]
    failed: list[FailedUpload]


class FolderListing(CamelModel):
    current_path: str
    files: list[StoredFileRead]
    subfolders: list[str]
    pagination: Pagination


class FolderList(CamelModel):
    folders: list[str]


class FolderStats(CamelModel):
    folder_name: str
    file_count: int
    total_size: int


class StorageStats(CamelModel):
    total_files: int
    total_size: int
    folder_breakdown: list[FolderStats]


class BulkDeleteRequest(CamelModel):
    file_ids: list[UUID] = Field(min_length=1, max_length=100)


class BulkDeleteResult(CamelModel):
    deleted: list[UUID]
    not_found: list[UUID]
