"""File upload orchestration and metadata operations for media storage."""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import InternalError, NotFoundError, ValidationError
from app.metrics import observe_upload
from app.models.stored_file import StoredFile
from app.models.user import User
from app.services import folders as folder_service
from app.services.common import coerce_uuid, coerce_uuid_or_404
from app.services.crud import CRUDManager, DuplicateKeyError
from app.services.object_storage import ObjectStorageError, get_media_storage
from app.validators.folders import FolderPath, FolderValidationError

logger = logging.getLogger(__name__)

MB = 1024 * 1024
SAFE_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]{1,16}$")

SIZE_LIMITS: dict[str, int] = {
    "image": 50 * MB,
    "document": 250 * MB,
    "video": 200 * MB,
    "audio": 200 * MB,
    "archive": 500 * MB,
    "default": 500 * MB,
}

KNOWN_MIME_TYPES: dict[str, frozenset[str]] = {
    "image": frozenset(
        {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp", "image/svg+xml"}
    ),
    "document": frozenset(
        {
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "text/plain",
            "text/csv",
            "application/vnd.ms-excel",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        }
    ),
    "video": frozenset({"video/mp4", "video/avi", "video/quicktime", "video/x-ms-wmv"}),
    "audio": frozenset({"audio/mpeg", "audio/wav", "audio/aac"}),
    "archive": frozenset(
        {"application/zip", "application/x-rar-compressed", "application/x-7z-compressed"}
    ),
}
_ALL_KNOWN_TYPES = frozenset().union(*KNOWN_MIME_TYPES.values())

FILE_NOT_FOUND = "File not found or access denied"


class FileValidationError(ValueError):
    """File validation failure."""


@dataclass(frozen=True)
class UploadItem:
    """One file part of an upload request, fully read into memory."""

    original_name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def describe(self) -> dict:
        return {
            "original_name": self.original_name,
            "mime_type": self.mime_type,
            "size": self.size,
        }


def file_category(mime_type: str) -> str:
    lowered = (mime_type or "").lower()
    if lowered.startswith("image/"):
        return "image"
    if lowered.startswith("video/"):
        return "video"
    if lowered.startswith("audio/"):
        return "audio"
    if any(token in lowered for token in ("pdf", "document", "text", "csv", "excel")):
        return "document"
    if any(token in lowered for token in ("zip", "rar", "7z")):
        return "archive"
    return "default"


def validate_file(item: UploadItem, folder: str = "") -> None:
    """Raise FileValidationError when ``item`` exceeds its category ceiling."""
    category = file_category(item.mime_type)
    limit = SIZE_LIMITS.get(category, SIZE_LIMITS["default"])
    if item.size > limit:
        raise FileValidationError(
            f"File too large: {item.size / MB:.2f}MB. "
            f"Max size for {category} files: {limit // MB}MB"
        )
    if item.mime_type not in _ALL_KNOWN_TYPES:
        logger.warning(
            "file_type_unknown mime_type=%s folder=%s", item.mime_type, folder or "root"
        )


def storage_namespace(owner_email: str, folder: FolderPath) -> str:
    return f"{owner_email}/{folder}" if folder else owner_email


def _stored_file_name(original_name: str) -> str:
    ext = Path(original_name).suffix.lower()
    if not SAFE_EXTENSION_RE.match(ext):
        ext = ""
    stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    return f"{stamp}_{uuid.uuid4().hex[:12]}{ext}"


def parse_folder(raw: str | None) -> FolderPath:
    try:
        return FolderPath.parse(raw)
    except FolderValidationError as exc:
        raise ValidationError(str(exc), "Invalid folder name") from exc


class StoredFileRepository(CRUDManager[StoredFile]):
    model = StoredFile
    not_found_detail = FILE_NOT_FOUND

    @classmethod
    def find_owned(cls, db: Session, file_id, user_id: str) -> StoredFile | None:
        return cls.find_unique(db, id=coerce_uuid(file_id), user_id=user_id)

    @classmethod
    def folder_breakdown(cls, db: Session, user_id: str) -> list[dict]:
        rows = (
            db.query(
                StoredFile.folder_name,
                func.count(StoredFile.id),
                func.coalesce(func.sum(StoredFile.size), 0),
            )
            .filter(StoredFile.user_id == user_id)
            .group_by(StoredFile.folder_name)
            .order_by(StoredFile.folder_name)
            .all()
        )
        return [
            {"folder_name": name, "file_count": int(count), "total_size": int(total)}
            for name, count, total in rows
        ]


class FileStorageService:
    """Uploads into a per-user media namespace plus owned-file operations."""

    def __init__(self) -> None:
        self.storage = None

    def _storage_client(self):
        if self.storage is None:
            self.storage = get_media_storage()
        return self.storage

    def upload_files(
        self,
        db: Session,
        owner: User,
        items: Sequence[UploadItem],
        folder_name: str | None = None,
    ) -> dict:
        if not items:
            raise ValidationError("No files provided", "No files provided")
        folder = parse_folder(folder_name)
        namespace = storage_namespace(owner.email, folder)
        result: dict[str, list] = {"success": [], "failed": []}

        try:
            self._storage_client().ensure_folder(namespace)
        except ObjectStorageError as exc:
            logger.error("storage_folder_failed namespace=%s error=%s", namespace, exc)
            result["failed"] = [
                {"file": item.describe(), "error": f"Failed to create folder: {exc}"}
                for item in items
            ]
            observe_upload(0, len(items), 0)
            return result

        for item in items:
            try:
                validate_file(item, folder)
                record = self._store_one(db, owner, item, folder, namespace)
            except FileValidationError as exc:
                result["failed"].append({"file": item.describe(), "error": str(exc)})
                continue
            except ObjectStorageError as exc:
                logger.warning(
                    "file_upload_failed user_id=%s name=%s error=%s",
                    owner.id,
                    item.original_name,
                    exc,
                )
                result["failed"].append({"file": item.describe(), "error": str(exc)})
                continue
            except (DuplicateKeyError, InternalError, SQLAlchemyError) as exc:
                db.rollback()
                logger.error(
                    "file_record_failed user_id=%s name=%s error=%s",
                    owner.id,
                    item.original_name,
                    exc,
                )
                result["failed"].append(
                    {"file": item.describe(), "error": "Failed to save file metadata"}
                )
                continue
            result["success"].append(record)
        observe_upload(
            len(result["success"]),
            len(result["failed"]),
            sum(record.size for record in result["success"]),
        )
        return result

    def _store_one(
        self,
        db: Session,
        owner: User,
        item: UploadItem,
        folder: FolderPath,
        namespace: str,
    ) -> StoredFile:
        stored = self._storage_client().upload(
            namespace, _stored_file_name(item.original_name), item.data, item.mime_type
        )
        record = StoredFileRepository.create(
            db,
            {
                "user_id": owner.id,
                "original_name": item.original_name,
                "file_name": stored.file_name,
                "folder_name": str(folder),
                "file_type": item.mime_type,
                "mime_type": item.mime_type,
                "size": item.size,
                "url": stored.url,
                "public_id": stored.public_id,
                "storage_folder": namespace,
            },
        )
        logger.info(
            "file_upload_success user_id=%s file_id=%s public_id=%s",
            owner.id,
            record.id,
            stored.public_id,
        )
        return record

    def get_file(self, db: Session, file_id, user_id: str) -> StoredFile:
        coerce_uuid_or_404(file_id, FILE_NOT_FOUND)
        record = StoredFileRepository.find_owned(db, file_id, user_id)
        if record is None:
            raise NotFoundError(FILE_NOT_FOUND)
        return record

    def rename_file(self, db: Session, file_id, user_id: str, original_name: str | None) -> StoredFile:
        record = self.get_file(db, file_id, user_id)
        if original_name is None:
            return record
        return StoredFileRepository.apply_changes(db, record, {"original_name": original_name})

    def _delete_object(self, record: StoredFile) -> None:
        try:
            self._storage_client().delete(record.public_id)
        except (ObjectStorageError, ValueError) as exc:
            logger.warning(
                "storage_delete_failed file_id=%s public_id=%s error=%s",
                record.id,
                record.public_id,
                exc,
            )

    def delete_file(self, db: Session, file_id, user_id: str) -> dict:
        record = self.get_file(db, file_id, user_id)
        self._delete_object(record)
        StoredFileRepository.remove(db, record)
        logger.info("file_deleted file_id=%s user_id=%s", file_id, user_id)
        return {"message": "File deleted successfully"}

    def delete_files(self, db: Session, file_ids: Sequence[uuid.UUID], user_id: str) -> dict:
        deleted: list[uuid.UUID] = []
        not_found: list[uuid.UUID] = []
        for file_id in dict.fromkeys(file_ids):
            record = StoredFileRepository.find_owned(db, file_id, user_id)
            if record is None:
                not_found.append(file_id)
                continue
            self._delete_object(record)
            db.delete(record)
            deleted.append(file_id)
        db.commit()
        logger.info(
            "files_bulk_deleted user_id=%s deleted=%d not_found=%d",
            user_id,
            len(deleted),
            len(not_found),
        )
        return {"deleted": deleted, "not_found": not_found}

    def get_user_folders(self, db: Session, user_id: str) -> dict:
        paths = folder_service.user_folder_paths(db, user_id)
        return {"folders": folder_service.all_folders(paths)}

    def get_storage_stats(self, db: Session, user_id: str) -> dict:
        breakdown = StoredFileRepository.folder_breakdown(db, user_id)
        return {
            "total_files": sum(row["file_count"] for row in breakdown),
            "total_size": sum(row["total_size"] for row in breakdown),
            "folder_breakdown": breakdown,
        }

    def list_files(
        self,
        db: Session,
        user_id: str,
        folder: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        return folder_service.browse(db, user_id, parse_folder(folder), page, limit)


file_storage = FileStorageService()
