from __future__ import annotations

import os
import shutil
from datetime import datetime
from pathlib import Path

from repo_corpus.config import OUTPUT_TIMESTAMP_FORMAT
from repo_corpus.exceptions import FileReadError
from repo_corpus.logging import logger


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def walk_source_files(root: Path, extension: str) -> list[Path]:
    """Collect the files below ``root`` whose name ends with ``extension``.

    The tree is walked depth-first with an explicit stack and the result is
    sorted by POSIX relative path, so repeated runs over the same tree give the
    same order.

    Args:
        root (Path): the directory to walk
        extension (str): required file name suffix, e.g. ``.java``

    Returns:
        list[Path]: matching regular files in lexicographic relative-path order
    """
    found: list[Path] = []
    stack = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as exc:
            logger.warning("directory_unreadable", path=str(current), reason=str(exc))
            continue
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                stack.append(Path(entry.path))
            elif entry.name.endswith(extension) and entry.is_file(follow_symlinks=False):
                found.append(Path(entry.path))
    return sorted(found, key=lambda p: relpath(p, root))


def read_source_text(path: Path) -> str:
    """Read a source file as UTF-8, replacing undecodable bytes.

    Args:
        path (Path): file to read

    Raises:
        FileReadError: if the file cannot be read

    Returns:
        str: the decoded file content
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FileReadError(path=path, reason=exc.strerror or str(exc)) from exc
    return data.decode("utf-8", errors="replace")


def remove_tree(path: Path) -> None:
    """Remove a directory tree if it exists.

    Args:
        path (Path): directory to remove
    """
    if path.exists():
        shutil.rmtree(path)


def now_timestamp(moment: datetime | None = None) -> str:
    """Format a moment (default: now, local time) for output file names."""
    return (moment or datetime.now()).strftime(OUTPUT_TIMESTAMP_FORMAT)  # noqa: DTZ005
