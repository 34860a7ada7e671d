"""Folder path validation and normalization."""

from __future__ import annotations

import re

FOLDER_NAME_RE = re.compile(r"^[a-zA-Z0-9/_-]+$")
MAX_FOLDER_LENGTH = 100


class FolderValidationError(ValueError):
    """Folder name failed validation."""


def clean_folder_name(raw: str | None) -> str:
    """Strip surrounding whitespace, then leading and trailing slashes."""
    if not raw:
        return ""
    return raw.strip().strip("/")


def folder_name_error(raw: str | None) -> str | None:
    """Return a human-readable problem with ``raw``, or None when it is valid."""
    cleaned = clean_folder_name(raw)
    if not cleaned:
        return None
    if not FOLDER_NAME_RE.match(cleaned):
        return (
            "Folder name can only contain letters, numbers, hyphens, "
            "underscores, and forward slashes"
        )
    if "//" in cleaned:
        return "Folder name cannot contain consecutive slashes"
    if len(cleaned) > MAX_FOLDER_LENGTH:
        return f"Folder path is too long (max {MAX_FOLDER_LENGTH} characters)"
    return None


class FolderPath(str):
    """A normalized, validated folder path. ``""`` is the root folder."""

    __slots__ = ()

    @classmethod
    def parse(cls, raw: str | None) -> FolderPath:
        problem = folder_name_error(raw)
        if problem:
            raise FolderValidationError(problem)
        return cls(clean_folder_name(raw))
