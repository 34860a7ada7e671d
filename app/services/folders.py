"""Folder hierarchy derived from the flat folder paths of stored files.

Folders are never persisted. Every file carries a slash-delimited
``folder_name`` and the tree is rebuilt from those strings on demand: a path
``a/b/c`` implies folders ``a`` and ``a/b`` even when no file sits there.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from app.models.stored_file import StoredFile
from app.services import response
from app.services.common import page_offset
from app.validators.folders import FolderPath


def ancestor_closure(paths: Iterable[str]) -> set[str]:
    """Every non-root path plus each of its ancestors."""
    folders: set[str] = set()
    for path in paths:
        if not path:
            continue
        parts = path.split("/")
        for depth in range(1, len(parts)):
            folders.add("/".join(parts[:depth]))
        folders.add(path)
    return folders


def all_folders(paths: Iterable[str]) -> list[str]:
    return sorted(ancestor_closure(paths))


def child_folders(folders: Iterable[str], current_path: str) -> list[str]:
    """Names of the folders exactly one level below ``current_path``."""
    if not current_path:
        names = {folder for folder in folders if "/" not in folder}
        return sorted(names)

    prefix = current_path + "/"
    names = set()
    for folder in folders:
        if not folder.startswith(prefix):
            continue
        remainder = folder[len(prefix):]
        if remainder and "/" not in remainder:
            names.add(remainder)
    return sorted(names)


def user_folder_paths(db: Session, user_id: str) -> list[str]:
    rows = (
        db.query(StoredFile.folder_name)
        .filter(StoredFile.user_id == user_id)
        .distinct()
        .all()
    )
    return [row[0] for row in rows]


def browse(
    db: Session,
    user_id: str,
    current_path: FolderPath,
    page: int,
    page_size: int,
) -> dict:
    """Files stored directly at ``current_path`` plus its immediate subfolders.

    Pagination covers only the files at ``current_path``; files further down
    the tree are reached by browsing the subfolders.
    """
    files_query = (
        db.query(StoredFile)
        .filter(StoredFile.user_id == user_id)
        .filter(StoredFile.folder_name == str(current_path))
    )
    total = files_query.count()
    files = (
        files_query.order_by(StoredFile.uploaded_at.desc(), StoredFile.id)
        .offset(page_offset(page, page_size))
        .limit(page_size)
        .all()
    )
    folders = ancestor_closure(user_folder_paths(db, user_id))
    return {
        "current_path": str(current_path),
        "files": files,
        "subfolders": child_folders(folders, current_path),
        "pagination": response.pagination(page, page_size, total),
    }
