from __future__ import annotations

import pytest

from app.services import folders as folder_service
from app.validators.folders import (
    FolderPath,
    FolderValidationError,
    clean_folder_name,
    folder_name_error,
)


def test_all_folders_adds_every_ancestor():
    assert folder_service.all_folders(["a/b/c"]) == ["a", "a/b", "a/b/c"]


def test_all_folders_empty_input():
    assert folder_service.all_folders([]) == []
    assert folder_service.all_folders(["", ""]) == []


def test_all_folders_deduplicates_and_sorts():
    result = folder_service.all_folders(["docs/2024", "docs", "", "art/raw", "docs/2024"])
    assert result == ["art", "art/raw", "docs", "docs/2024"]
    assert all(not item.startswith("/") and not item.endswith("/") for item in result)


def test_child_folders_at_root_keeps_top_level_only():
    folders = folder_service.all_folders(["x/y", "z"])
    assert folder_service.child_folders(folders, "") == ["x", "z"]


def test_child_folders_one_level_below_current():
    folders = folder_service.all_folders(["x/y/deep", "x/w", "xy/q"])
    assert folder_service.child_folders(folders, "x") == ["w", "y"]
    assert folder_service.child_folders(folders, "x/y") == ["deep"]
    assert folder_service.child_folders(folders, "x/y/deep") == []


@pytest.mark.parametrize("raw", ["a//b", "a b", "a" * 101, "bad.name", "ümlaut"])
def test_folder_path_rejects_invalid(raw):
    with pytest.raises(FolderValidationError):
        FolderPath.parse(raw)


def test_folder_path_accepts_and_normalizes():
    assert FolderPath.parse("a-b_c/d") == "a-b_c/d"
    assert FolderPath.parse("  /photos/2024/ ") == "photos/2024"
    assert FolderPath.parse(None) == ""
    assert FolderPath.parse("   ") == ""


def test_folder_name_error_messages():
    assert "consecutive slashes" in folder_name_error("a//b")
    assert "too long" in folder_name_error("a" * 101)
    assert folder_name_error("a" * 100) is None
    assert clean_folder_name("//x//") == "x"


def test_browse_lists_files_and_direct_subfolders(db_session, user, make_user, make_file):
    root_file = make_file(user, "")
    make_file(user, "x")
    make_file(user, "x/y")
    make_file(make_user(), "other")

    at_root = folder_service.browse(db_session, user.id, FolderPath.parse(""), 1, 20)
    assert at_root["current_path"] == ""
    assert at_root["subfolders"] == ["x"]
    assert [f.id for f in at_root["files"]] == [root_file.id]
    assert at_root["pagination"] == {"page": 1, "limit": 20, "total": 1, "total_pages": 1}

    at_x = folder_service.browse(db_session, user.id, FolderPath.parse("x"), 1, 20)
    assert at_x["subfolders"] == ["y"]
    assert all(f.folder_name == "x" for f in at_x["files"])


def test_browse_paginates_files_at_path(db_session, user, make_file):
    for index in range(5):
        make_file(user, "docs", original_name=f"f{index}.pdf")

    page = folder_service.browse(db_session, user.id, FolderPath.parse("docs"), 2, 2)
    assert len(page["files"]) == 2
    assert page["pagination"]["total"] == 5
    assert page["pagination"]["total_pages"] == 3

    last = folder_service.browse(db_session, user.id, FolderPath.parse("docs"), 3, 2)
    assert len(last["files"]) == 1


def test_browse_subfolders_implied_by_deep_paths(db_session, user, make_file):
    make_file(user, "a/b/c")
    listing = folder_service.browse(db_session, user.id, FolderPath.parse("a"), 1, 20)
    assert listing["files"] == []
    assert listing["subfolders"] == ["b"]
