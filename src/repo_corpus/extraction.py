"""Safe extraction of a repository zip archive into a scratch directory."""

from __future__ import annotations

import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, BinaryIO

from repo_corpus.config import COPY_CHUNK_SIZE, ArchiveEntry, ScratchTree
from repo_corpus.exceptions import ArchiveIntegrityError, PathTraversalError
from repo_corpus.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

_SYMLINK_MODE = 0o120000
_FILE_TYPE_MASK = 0o170000
_ENCRYPTED_FLAG = 0x1

SUPPORTED_COMPRESSION = frozenset({zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED, zipfile.ZIP_BZIP2, zipfile.ZIP_LZMA})


def is_symlink(info: zipfile.ZipInfo) -> bool:
    """Check whether a zip member stores a Unix symbolic link.

    Args:
        info (zipfile.ZipInfo): archive member

    Returns:
        bool: True if the high bits of ``external_attr`` carry a symlink mode
    """
    mode = (info.external_attr >> 16) & 0xFFFF
    return (mode & _FILE_TYPE_MASK) == _SYMLINK_MODE


def iter_archive_entries(archive: zipfile.ZipFile) -> Iterator[ArchiveEntry]:
    """Yield metadata for every member of ``archive`` in stored order."""
    for info in archive.infolist():
        yield ArchiveEntry(
            name=info.filename,
            is_dir=info.is_dir(),
            size=info.file_size,
            is_symlink=is_symlink(info),
            is_encrypted=bool(info.flag_bits & _ENCRYPTED_FLAG),
            compress_type=info.compress_type,
        )


def resolve_entry_path(root: Path, name: str) -> Path:
    """Resolve where an archive member would land below ``root``.

    Args:
        root (Path): resolved extraction root
        name (str): archive-internal member name

    Raises:
        PathTraversalError: if the name is absolute, contains a NUL byte,
            or resolves to a location outside ``root``

    Returns:
        Path: the resolved destination path
    """
    normalized = name.replace("\\", "/")
    if "\x00" in name or normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
        raise PathTraversalError(entry=name, root=root)
    target = (root / normalized).resolve()
    if target != root and root not in target.parents:
        raise PathTraversalError(entry=name, root=root)
    return target


def detect_content_root(root: Path, names: Sequence[str]) -> Path:
    """Find the single wrapper directory GitHub puts at the top of a zipball.

    Args:
        root (Path): extraction root
        names (Sequence[str]): archive member names

    Returns:
        Path: ``root / <wrapper>`` when every member lives under one top-level
            directory, ``root`` otherwise
    """
    tops = {PurePosixPath(n.replace("\\", "/")).parts[0] for n in names if n.strip("/")}
    if len(tops) != 1:
        return root
    candidate = root / tops.pop()
    return candidate if candidate.is_dir() else root


def validate_archive(
    entries: Sequence[ArchiveEntry],
    root: Path,
    *,
    label: str = "<stream>",
    max_entries: int | None = None,
    max_total_bytes: int | None = None,
) -> list[Path]:
    """Check every member before anything is written to disk.

    Args:
        entries (Sequence[ArchiveEntry]): archive members in stored order
        root (Path): resolved extraction root
        label (str): archive name used in error messages
        max_entries (int | None): maximum number of members, None for no limit
        max_total_bytes (int | None): maximum declared uncompressed size, None for no limit

    Raises:
        PathTraversalError: if a member escapes ``root`` or is a symbolic link
        ArchiveIntegrityError: if a limit is exceeded, or a member is encrypted
            or uses a compression method that cannot be read

    Returns:
        list[Path]: destination path per member, in the order of ``entries``
    """
    if max_entries is not None and len(entries) > max_entries:
        raise ArchiveIntegrityError(archive=label, reason=f"too many entries: {len(entries)} > {max_entries}")
    total = sum(entry.size for entry in entries)
    if max_total_bytes is not None and total > max_total_bytes:
        raise ArchiveIntegrityError(archive=label, reason=f"declared size {total} exceeds {max_total_bytes} bytes")
    targets: list[Path] = []
    for entry in entries:
        if entry.is_symlink:
            raise PathTraversalError(entry=entry.name, root=root, message="Symbolic link entries are not allowed.")
        if entry.is_encrypted:
            raise ArchiveIntegrityError(archive=label, reason=f"{entry.name}: encrypted entries are not supported")
        if entry.compress_type not in SUPPORTED_COMPRESSION:
            raise ArchiveIntegrityError(
                archive=label,
                reason=f"{entry.name}: unsupported compression method {entry.compress_type}",
            )
        targets.append(resolve_entry_path(root, entry.name))
    return targets


def extract_archive(
    archive: Path | BinaryIO,
    destination: Path,
    *,
    max_entries: int | None = None,
    max_total_bytes: int | None = None,
) -> ScratchTree:
    """Extract a zip archive into ``destination`` without leaving it.

    All members are validated up front, so a hostile archive fails before
    any of its files is created. Members are streamed to disk chunk by chunk.

    Args:
        archive (Path | BinaryIO): path to, or seekable stream of, a zip archive
        destination (Path): scratch directory owned by the caller
        max_entries (int | None): optional limit on the number of members
        max_total_bytes (int | None): optional limit on the declared uncompressed size

    Raises:
        ArchiveIntegrityError: if the archive is unreadable or any member fails to extract
        PathTraversalError: if any member would land outside ``destination``

    Returns:
        ScratchTree: the extraction root, its content root and the extracted files
    """
    label = str(archive) if isinstance(archive, Path) else str(getattr(archive, "name", "<stream>"))
    destination.mkdir(parents=True, exist_ok=True)
    root = destination.resolve()
    try:
        zf = zipfile.ZipFile(archive)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as exc:
        raise ArchiveIntegrityError(archive=label, reason=str(exc)) from exc

    with zf:
        infos = zf.infolist()
        entries = list(iter_archive_entries(zf))
        targets = validate_archive(
            entries, root, label=label, max_entries=max_entries, max_total_bytes=max_total_bytes
        )
        files: list[Path] = []
        for info, entry, target in zip(infos, entries, targets, strict=True):
            try:
                if entry.is_dir:
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, target.open("wb") as dst:
                    shutil.copyfileobj(src, dst, COPY_CHUNK_SIZE)
            except (zipfile.BadZipFile, zlib.error, OSError, EOFError, NotImplementedError, RuntimeError) as exc:
                raise ArchiveIntegrityError(
                    archive=label,
                    reason=f"{entry.name}: {exc}",
                    message="Failed to extract archive entry.",
                ) from exc
            files.append(target)
        content_root = detect_content_root(root, [entry.name for entry in entries])

    logger.info("archive_extracted", archive=label, root=str(root), entries=len(entries), files=len(files))
    return ScratchTree(root=root, content_root=content_root, files=tuple(files))
