import os
from datetime import datetime
from pathlib import Path

import pytest

from repo_corpus.exceptions import FileReadError
from repo_corpus.file_manipulation import (
    now_timestamp,
    read_source_text,
    relpath,
    remove_tree,
    walk_source_files,
)


def _touch(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.unit
def test_walk_source_files_filters_and_sorts(tmp_path: Path) -> None:
    _touch(tmp_path / "src" / "main" / "java" / "b" / "B.java")
    _touch(tmp_path / "src" / "main" / "java" / "a" / "A.java")
    _touch(tmp_path / "Root.java")
    _touch(tmp_path / "README.md")
    _touch(tmp_path / "src" / "Notes.java.txt")

    found = walk_source_files(tmp_path, ".java")

    assert [relpath(p, tmp_path) for p in found] == [
        "Root.java",
        "src/main/java/a/A.java",
        "src/main/java/b/B.java",
    ]


@pytest.mark.unit
def test_walk_source_files_is_stable(tmp_path: Path) -> None:
    for name in ["z/Z.java", "a/A.java", "m/M.java", "a/b/AB.java"]:
        _touch(tmp_path / name)

    assert walk_source_files(tmp_path, ".java") == walk_source_files(tmp_path, ".java")


@pytest.mark.unit
def test_walk_source_files_ignores_symlinks(tmp_path: Path) -> None:
    real = _touch(tmp_path / "real" / "A.java")
    (tmp_path / "link.java").symlink_to(real)

    assert [relpath(p, tmp_path) for p in walk_source_files(tmp_path, ".java")] == ["real/A.java"]


@pytest.mark.unit
@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes need a POSIX system")
def test_walk_source_files_ignores_non_regular_files(tmp_path: Path) -> None:
    _touch(tmp_path / "src" / "A.java")
    os.mkfifo(tmp_path / "src" / "Pipe.java")

    assert [relpath(p, tmp_path) for p in walk_source_files(tmp_path, ".java")] == ["src/A.java"]


@pytest.mark.unit
def test_read_source_text_replaces_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "A.java"
    path.write_bytes(b"class A { String s = \"\xff\"; }")

    assert read_source_text(path) == 'class A { String s = "�"; }'


@pytest.mark.unit
def test_read_source_text_raises_file_read_error(tmp_path: Path) -> None:
    missing = tmp_path / "Missing.java"

    with pytest.raises(FileReadError) as exc_info:
        read_source_text(missing)

    assert exc_info.value.path == missing


@pytest.mark.unit
def test_remove_tree_tolerates_missing_directory(tmp_path: Path) -> None:
    target = tmp_path / "scratch"
    _touch(target / "deep" / "A.java")

    remove_tree(target)
    remove_tree(target)

    assert not target.exists()


@pytest.mark.unit
def test_now_timestamp_format() -> None:
    assert now_timestamp(datetime(2025, 4, 3, 9, 5, 7)) == "20250403_090507"  # noqa: DTZ001


@pytest.mark.unit
def test_relpath_outside_root_returns_path(tmp_path: Path) -> None:
    other = Path("/elsewhere/A.java")

    assert relpath(other, tmp_path) == str(other)
