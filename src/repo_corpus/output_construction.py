from __future__ import annotations

import io
import os
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from repo_corpus.config import (
    DECLARATION_MARKER,
    END_MARKER,
    FILE_MARKER,
    PACKAGE_MARKER,
    PARTIAL_SUFFIX,
    CorpusReport,
    NormalizedRecord,
    SkippedFile,
)
from repo_corpus.exceptions import FileReadError, OutputWriteError
from repo_corpus.file_manipulation import now_timestamp, read_source_text, relpath, walk_source_files
from repo_corpus.logging import logger
from repo_corpus.normalization import normalize_record

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from datetime import datetime
    from pathlib import Path

    from repo_corpus.config import ScratchTree


def render_record(record: NormalizedRecord) -> str:
    """Wrap a normalized record in the corpus envelope.

    The body is followed by one extra newline before the end marker, so a
    non-empty body (which always ends with a newline) is separated from
    ``// END_OF_FILE`` by a blank line.

    Args:
        record (NormalizedRecord): the record to render

    Returns:
        str: the envelope text, ending with a blank line
    """
    out = io.StringIO()
    out.write(f"{FILE_MARKER}{record.file_name}\n")
    out.write(f"{PACKAGE_MARKER}{record.package_name}\n")
    out.write(f"{DECLARATION_MARKER}{record.declaration}\n")
    out.write("\n")
    out.write(record.cleaned_text)
    out.write("\n")
    out.write(f"{END_MARKER}\n")
    out.write("\n")
    return out.getvalue()


def build_corpus(records: Iterable[NormalizedRecord]) -> str:
    """Concatenate the envelopes of ``records`` in the given order."""
    return "".join(render_record(rec) for rec in records)


def output_filename(repository: str, timestamp: str | datetime | None = None) -> str:
    """Build the default artifact name for a repository.

    Args:
        repository (str): identifier such as ``owner/name``
        timestamp (str | datetime | None): preformatted stamp, a moment to
            format, or None for now

    Returns:
        str: ``owner_name_YYYYmmdd_HHMMSS.txt``
    """
    stamp = timestamp if isinstance(timestamp, str) else now_timestamp(timestamp)
    safe = repository.strip().strip("/").replace("/", "_").replace("\\", "_")
    return f"{safe}_{stamp}.txt"


def _load_record(root: Path, path: Path) -> NormalizedRecord | SkippedFile:
    name = relpath(path, root)
    try:
        text = read_source_text(path)
    except FileReadError as exc:
        return SkippedFile(file_name=name, reason=exc.reason)
    record = normalize_record(name, text)
    logger.debug("file_normalized", path=name, package=record.package_name, declaration=record.declaration)
    return record


def iter_records(
    root: Path,
    files: list[Path],
    *,
    workers: int = 1,
) -> Iterator[NormalizedRecord | SkippedFile]:
    """Read and normalize ``files``, yielding results in the order of ``files``.

    Args:
        root (Path): directory file names are made relative to
        files (list[Path]): files in output order
        workers (int): number of threads used to normalize; 1 disables the pool

    Yields:
        NormalizedRecord | SkippedFile: one result per input file
    """
    if workers <= 1:
        for path in files:
            yield _load_record(root, path)
        return
    with ThreadPoolExecutor(max_workers=workers) as executor:
        # map() yields in submission order, whatever the completion order
        yield from executor.map(lambda p: _load_record(root, p), files)


def partial_path(output: Path) -> Path:
    """Return the sibling path the corpus is written to before it is renamed into place."""
    return output.with_name(f"{output.name}{PARTIAL_SUFFIX}")


def write_corpus(
    tree: ScratchTree,
    output: Path,
    *,
    extension: str,
    workers: int = 1,
) -> CorpusReport:
    """Write the corpus artifact for every matching file of a scratch tree.

    The corpus goes to a ``.part`` sibling first and replaces ``output`` only
    once every record is written, so a failed run never leaves a truncated
    artifact behind.

    Args:
        tree (ScratchTree): extracted archive
        output (Path): artifact path; parent directories are created
        extension (str): file name suffix to select, e.g. ``.java``
        workers (int): number of normalization threads

    Raises:
        OutputWriteError: if the artifact or its directory cannot be written

    Returns:
        CorpusReport: file names written, in order, plus the skipped files
    """
    files = walk_source_files(tree.content_root, extension)
    report = CorpusReport(output=output)
    partial = partial_path(output)
    written = False
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        with partial.open("w", encoding="utf-8", newline="\n") as fh:
            for result in iter_records(tree.content_root, files, workers=workers):
                if isinstance(result, SkippedFile):
                    logger.warning("file_skipped", path=result.file_name, reason=result.reason)
                    report.skipped.append(result)
                    continue
                fh.write(render_record(result))
                report.records.append(result.file_name)
        os.replace(partial, output)
        written = True
    except OSError as exc:
        raise OutputWriteError(path=output, reason=exc.strerror or str(exc)) from exc
    finally:
        if not written and partial.exists():
            partial.unlink()
    logger.info(
        "corpus_written",
        output=str(output),
        records=len(report.records),
        skipped=len(report.skipped),
    )
    return report
