"""S3-compatible media storage with a folder-style namespace."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol
from urllib.parse import quote

from app.config import settings

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class ObjectStorageError(Exception):
    """Generic object storage failure."""


@dataclass(frozen=True)
class StoredObject:
    """What the storage provider reports back for an uploaded blob."""

    public_id: str
    url: str
    folder: str
    file_name: str
    size: int
    content_type: str | None


class MediaStorage(Protocol):
    """Storage provider interface."""

    def ensure_folder(self, folder: str) -> None: ...
    def upload(
        self, folder: str, file_name: str, data: bytes, content_type: str | None
    ) -> StoredObject: ...
    def delete(self, public_id: str) -> None: ...


class S3MediaStorage:
    """S3/MinIO/R2-backed media provider.

    Folders are zero-byte ``<path>/`` marker objects, which is how S3 consoles
    represent empty directories.
    """

    def __init__(
        self,
        bucket_name: str,
        endpoint_url: str,
        access_key: str | None,
        secret_key: str | None,
        region: str,
        root_prefix: str = "",
        public_base_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.bucket_name = bucket_name
        self.endpoint_url = endpoint_url
        self.region = region
        self.root_prefix = root_prefix.strip("/")
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        if client is not None:
            self.client = client
            return
        try:
            import boto3
        except ImportError as exc:
            raise ObjectStorageError("boto3 is required for S3 storage") from exc
        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    @staticmethod
    def _error_code(exc: Exception) -> str:
        response = getattr(exc, "response", None)
        if isinstance(response, dict):
            err = response.get("Error", {})
            if isinstance(err, dict):
                return str(err.get("Code", ""))
        return ""

    def _key(self, path: str) -> str:
        if self.root_prefix:
            return f"{self.root_prefix}/{path}"
        return path

    def public_url(self, public_id: str) -> str:
        key = quote(self._key(public_id), safe="/")
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"

    def ensure_bucket(self) -> None:
        """Create bucket if missing (safe to call repeatedly)."""
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
            return
        except Exception as exc:
            code = self._error_code(exc)
            if code not in {"404", "NoSuchBucket"}:
                raise ObjectStorageError("Unable to check storage bucket") from exc

        kwargs: dict = {"Bucket": self.bucket_name}
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        self.client.create_bucket(**kwargs)
        logger.info("Created storage bucket: %s", self.bucket_name)

    def _exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except Exception as exc:
            if self._error_code(exc) in _MISSING_CODES:
                return False
            raise ObjectStorageError("Failed to check object") from exc

    def ensure_folder(self, folder: str) -> None:
        """Create every level of ``folder``; existing levels are left alone."""
        current = ""
        for part in folder.strip("/").split("/"):
            if not part:
                continue
            current = f"{current}/{part}" if current else part
            marker = self._key(current) + "/"
            if self._exists(marker):
                continue
            try:
                self.client.put_object(Bucket=self.bucket_name, Key=marker, Body=b"")
            except Exception as exc:
                raise ObjectStorageError(f"Failed to create folder {current}") from exc
            logger.debug("storage_folder_created folder=%s", current)

    def upload(
        self, folder: str, file_name: str, data: bytes, content_type: str | None
    ) -> StoredObject:
        public_id = f"{folder.strip('/')}/{file_name}" if folder else file_name
        kwargs: dict = {
            "Bucket": self.bucket_name,
            "Key": self._key(public_id),
            "Body": data,
        }
        if content_type:
            kwargs["ContentType"] = content_type
        try:
            self.client.put_object(**kwargs)
        except Exception as exc:
            raise ObjectStorageError("Failed to upload object") from exc
        return StoredObject(
            public_id=public_id,
            url=self.public_url(public_id),
            folder=folder,
            file_name=file_name,
            size=len(data),
            content_type=content_type,
        )

    def delete(self, public_id: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=self._key(public_id))
        except Exception as exc:
            raise ObjectStorageError("Failed to delete object") from exc


@lru_cache(maxsize=1)
def get_media_storage() -> S3MediaStorage:
    settings.validate_s3_config()
    return S3MediaStorage(
        bucket_name=settings.s3_bucket_name,
        endpoint_url=settings.s3_endpoint_url,
        access_key=settings.s3_access_key,
        secret_key=settings.s3_secret_key,
        region=settings.s3_region,
        root_prefix=settings.media_root_prefix,
        public_base_url=settings.media_public_base_url,
    )


def ensure_storage_bucket() -> None:
    """Startup hook helper to guarantee bucket availability."""
    get_media_storage().ensure_bucket()
