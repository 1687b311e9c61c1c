#  -*- coding: utf-8 -*-
"""
repo_corpus: turn a GitHub repository into one normalized source corpus.

Overview
--------
The default branch of a repository is downloaded as a zip archive, extracted
into a private scratch directory (rejecting any entry that would escape it),
and every file with the selected extension (``.java`` by default) is
normalized:

- block and line comments are stripped, blank lines dropped,
- the first ``class``/``interface``/``enum``/``record``/``@interface``
  declaration is recorded,
- the ``package`` statement is recorded, or ``(default)``.

Each file is written to a single text artifact inside a fixed envelope::

    // FILE: src/main/java/x/A.java
    // PACKAGE: x
    // DECLARATION: class A

    <cleaned source>

    // END_OF_FILE

Files are written in lexicographic path order. The scratch directory is
removed when the run ends.

Examples
--------
    - Default branch of a repository, output named owner_repo_<timestamp>.txt:
        uv run python -m repo_corpus.cli spring-projects/spring-petclinic
    - Explicit branch and output path:
        uv run python -m repo_corpus.cli owner/repo --branch develop --output corpus.txt
    - Kotlin sources from an archive already on disk:
        uv run python -m repo_corpus.cli --archive snapshot.zip --extension .kt
    - Settings from a YAML file, logs to a file:
        uv run python -m repo_corpus.cli --config corpus.yaml --log-file corpus.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from repo_corpus import __version__
from repo_corpus.exceptions import RepoCorpusError
from repo_corpus.logging import logger, setup_logging
from repo_corpus.pipeline import run_pipeline
from repo_corpus.settings import load_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_corpus.archive_source import ArchiveSource
    from repo_corpus.config import RunReport
    from repo_corpus.settings import Settings

PROMPT = "Repository (e.g. user/repo): "


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Options left unset default to None so YAML configuration values are not
    overridden.

    Returns:
        argparse.ArgumentParser: the parser
    """
    p = argparse.ArgumentParser(
        prog="repo-corpus",
        description="Export the sources of a GitHub repository as one normalized text corpus.",
    )
    p.add_argument("repository", nargs="?", default=None, help="Repository as owner/name.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--branch", type=str, default=None, help="Branch (default: repository default branch).")
    p.add_argument("--extension", type=str, default=None, help="Source file suffix (default: .java).")
    p.add_argument("--output", type=Path, default=None, help="Output file.")
    p.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the generated <repo>_<timestamp>.txt name.",
    )
    p.add_argument("--archive", type=Path, default=None, help="Use a local zip archive instead of downloading.")
    p.add_argument("--api-url", type=str, default=None, help="GitHub API base URL.")
    p.add_argument("--token", type=str, default=None, help="GitHub token (default: $GITHUB_TOKEN).")
    p.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds.")
    p.add_argument("--workers", type=int, default=None, help="Normalization threads.")
    p.add_argument("--max-entries", type=int, default=None, help="Maximum number of archive entries.")
    p.add_argument(
        "--max-total-bytes",
        type=int,
        default=None,
        help="Maximum declared uncompressed archive size.",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML file with settings.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("-v", "--verbose", action="store_true", default=None, help="Log debug events.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse CLI arguments into settings.

    Args:
        argv (Sequence[str] | None): Optional CLI args.

    Returns:
        Settings: validated settings, CLI values taking precedence over ``--config``
    """
    args = vars(build_parser().parse_args(argv))
    config_file = args.pop("config")
    return load_settings(config_file, **args)


def prompt_repository(settings: Settings) -> Settings:
    """Ask for the repository on stdin when neither it nor an archive is set."""
    if settings.repository.strip() or settings.archive is not None:
        return settings
    repository = input(PROMPT).strip()
    return settings.model_copy(update={"repository": repository})


def print_report(report: RunReport) -> None:
    """Print the output path and the skipped files of a finished run."""
    print(f"Wrote {report.output} files={len(report.records)} skipped={len(report.skipped)}")
    for skipped in report.skipped:
        print(f"  skipped {skipped.file_name}: {skipped.reason}")


def main(argv: Sequence[str] | None = None, *, source: ArchiveSource | None = None) -> int:
    """Run the corpus export.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.
        source (ArchiveSource | None): archive source replacing the GitHub client.

    Returns:
        int: Process exit code, 0 on success and 1 on a fatal error.
    """
    try:
        settings = parse_args(argv)
    except (ValueError, OSError, yaml.YAMLError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2
    if settings.log_file or settings.verbose:
        setup_logging(settings.log_file or None, verbose=settings.verbose)

    try:
        settings = prompt_repository(settings)
    except EOFError:
        sys.stderr.write("error: no repository given\n")
        return 2

    try:
        report = run_pipeline(settings, source=source)
    except RepoCorpusError as exc:
        logger.error("run_failed", error=type(exc).__name__, detail=str(exc))
        sys.stderr.write(f"error: {exc}\n")
        return 1

    print_report(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
