from __future__ import annotations

import pytest

from app.services.object_storage import ObjectStorageError, S3MediaStorage


class _ClientError(Exception):
    def __init__(self, code: str):
        super().__init__(code)
        self.response = {"Error": {"Code": code}}


class _FakeS3Client:
    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.created_bucket = False
        self.bucket_exists = True
        self.content_types: dict[str, str] = {}
        self.put_keys: list[str] = []
        self.fail_puts = False

    def head_bucket(self, Bucket: str):
        if self.bucket_exists:
            return {}
        raise _ClientError("404")

    def create_bucket(self, **kwargs):
        self.created_bucket = True

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str | None = None):
        if self.fail_puts:
            raise _ClientError("AccessDenied")
        self.put_keys.append(Key)
        self.objects[Key] = Body
        if ContentType:
            self.content_types[Key] = ContentType

    def head_object(self, Bucket: str, Key: str):
        if Key not in self.objects:
            raise _ClientError("404")
        return {}

    def delete_object(self, Bucket: str, Key: str):
        self.objects.pop(Key, None)


def _service(fake, **kwargs) -> S3MediaStorage:
    return S3MediaStorage(
        "bucket", "http://minio:9000", "a", "b", "us-east-1", client=fake, **kwargs
    )


def test_bucket_creation_idempotent():
    fake = _FakeS3Client()
    fake.bucket_exists = False
    service = _service(fake)

    service.ensure_bucket()
    assert fake.created_bucket is True

    fake.created_bucket = False
    fake.bucket_exists = True
    service.ensure_bucket()
    assert fake.created_bucket is False


def test_ensure_folder_creates_each_level_once():
    fake = _FakeS3Client()
    service = _service(fake, root_prefix="uploads")

    service.ensure_folder("me@example.com/photos/2024")
    assert fake.put_keys == [
        "uploads/me@example.com/",
        "uploads/me@example.com/photos/",
        "uploads/me@example.com/photos/2024/",
    ]

    service.ensure_folder("me@example.com/photos/raw")
    assert fake.put_keys[-1] == "uploads/me@example.com/photos/raw/"
    assert len(fake.put_keys) == 4


def test_ensure_folder_wraps_provider_failure():
    fake = _FakeS3Client()
    fake.fail_puts = True
    with pytest.raises(ObjectStorageError):
        _service(fake).ensure_folder("a/b")


def test_upload_then_delete():
    fake = _FakeS3Client()
    service = _service(fake, root_prefix="uploads")

    stored = service.upload("me@example.com/docs", "1.txt", b"hello", "text/plain")
    assert stored.public_id == "me@example.com/docs/1.txt"
    assert stored.size == 5
    assert stored.url == "http://minio:9000/bucket/uploads/me%40example.com/docs/1.txt"
    assert fake.content_types["uploads/me@example.com/docs/1.txt"] == "text/plain"
    assert fake.objects["uploads/me@example.com/docs/1.txt"] == b"hello"

    service.delete(stored.public_id)
    assert "uploads/me@example.com/docs/1.txt" not in fake.objects


def test_public_url_uses_configured_base():
    service = _service(_FakeS3Client(), public_base_url="https://cdn.example.com/")
    assert service.public_url("a/b c.png") == "https://cdn.example.com/a/b%20c.png"
