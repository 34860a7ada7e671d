"""File upload and metadata endpoints, authenticated by API key."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from app.api.deps import get_db, require_api_key
from app.schemas.common import ApiResponse, MessageData
from app.schemas.file import (
    BulkDeleteRequest,
    BulkDeleteResult,
    FolderList,
    FolderListing,
    StorageStats,
    StoredFileRead,
    StoredFileUpdate,
    UploadResult,
)
from app.services import response
from app.services.auth_dependencies import Principal
from app.services.file_storage import UploadItem, file_storage

router = APIRouter(prefix="/files", tags=["files"])


async def _read_upload(upload: UploadFile) -> UploadItem:
    return UploadItem(
        original_name=upload.filename or "file",
        mime_type=upload.content_type or "application/octet-stream",
        data=await upload.read(),
    )


@router.post("/upload", response_model=ApiResponse[UploadResult])
async def upload_files(
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_api_key),
):
    # Every file part counts, whatever its field name
    form = await request.form()
    items = [
        await _read_upload(value)
        for _, value in form.multi_items()
        if isinstance(value, UploadFile)
    ]
    folder_name = form.get("folderName")
    if not isinstance(folder_name, str):
        folder_name = None
    result = file_storage.upload_files(db, principal.user, items, folder_name)
    message = (
        f"Uploaded {len(result['success'])} file(s), "
        f"{len(result['failed'])} failed"
    )
    return response.ok(result, message)


@router.get("", response_model=ApiResponse[FolderListing])
def list_files(
    folder: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_api_key),
):
    listing = file_storage.list_files(db, principal.user_id, folder, page, limit)
    return response.ok(listing, "Files retrieved")


@router.delete("", response_model=ApiResponse[BulkDeleteResult])
def delete_files(
    payload: BulkDeleteRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_api_key),
):
    result = file_storage.delete_files(db, payload.file_ids, principal.user_id)
    return response.ok(result, "Files deleted")


@router.get("/folders", response_model=ApiResponse[FolderList])
def list_folders(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_api_key),
):
    return response.ok(file_storage.get_user_folders(db, principal.user_id), "Folders retrieved")


@router.get("/stats", response_model=ApiResponse[StorageStats])
def storage_stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_api_key),
):
    return response.ok(
        file_storage.get_storage_stats(db, principal.user_id), "Storage statistics retrieved"
    )


@router.get("/{file_id}", response_model=ApiResponse[StoredFileRead])
def get_file(
    file_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_api_key),
):
    return response.ok(file_storage.get_file(db, file_id, principal.user_id), "File retrieved")


@router.put("/{file_id}", response_model=ApiResponse[StoredFileRead])
def rename_file(
    file_id: str,
    payload: StoredFileUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_api_key),
):
    record = file_storage.rename_file(db, file_id, principal.user_id, payload.original_name)
    return response.ok(record, "File updated")


@router.delete("/{file_id}", response_model=ApiResponse[MessageData])
def delete_file(
    file_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_api_key),
):
    return response.ok(file_storage.delete_file(db, file_id, principal.user_id), "File deleted")
