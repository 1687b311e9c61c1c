"""Sequencing of a corpus run: fetch, extract, walk, clean up.

A run owns one private temporary directory holding the downloaded archive and
the scratch tree. That directory is removed on every exit path once created,
whether the run succeeds, hits a fatal archive error or a transport error.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from repo_corpus.archive_source import GitHubArchiveSource, validate_repository
from repo_corpus.config import DEFAULT_EXTENSION, PipelineState, RunReport
from repo_corpus.extraction import extract_archive
from repo_corpus.file_manipulation import remove_tree
from repo_corpus.logging import logger
from repo_corpus.output_construction import output_filename, write_corpus
from repo_corpus.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from repo_corpus.archive_source import ArchiveSource
    from repo_corpus.config import CorpusReport

ARCHIVE_NAME = "snapshot.zip"
SCRATCH_NAME = "tree"


class Pipeline:
    """One corpus run, tracking its state for logging and reporting."""

    def __init__(self, settings: Settings, *, source: ArchiveSource | None = None) -> None:
        self.settings = settings
        self._source = source
        self.state = PipelineState.INIT
        self.work_dir: Path | None = None

    @property
    def source(self) -> ArchiveSource:
        """The archive source, GitHub unless one was injected."""
        if self._source is None:
            self._source = GitHubArchiveSource(
                api_url=self.settings.api_url,
                token=self.settings.token,
                timeout=self.settings.timeout,
            )
        return self._source

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        logger.info("pipeline_state", state=str(state), repository=self.settings.repository)

    def output_path(self, name: str) -> Path:
        """Return the configured output path, or a timestamped one in ``output_dir``."""
        if self.settings.output is not None:
            return self.settings.output
        return self.settings.output_dir / output_filename(name)

    def build(self, archive: Path, output: Path) -> CorpusReport:
        """Extract ``archive`` into the run's scratch tree and write its corpus.

        Args:
            archive (Path): zip archive already on disk
            output (Path): artifact path

        Raises:
            RuntimeError: if called outside a run
            ArchiveIntegrityError: if the archive is malformed
            PathTraversalError: if an entry escapes the scratch tree
            OutputWriteError: if the artifact cannot be written

        Returns:
            CorpusReport: what was written and skipped
        """
        if self.work_dir is None:
            msg = "build() must run inside run() or run_local()"
            raise RuntimeError(msg)
        self._enter(PipelineState.EXTRACTING)
        tree = extract_archive(
            archive,
            self.work_dir / SCRATCH_NAME,
            max_entries=self.settings.max_entries,
            max_total_bytes=self.settings.max_total_bytes,
        )
        self._enter(PipelineState.WALKING)
        return write_corpus(tree, output, extension=self.settings.extension, workers=self.settings.workers)

    def _cleanup(self) -> None:
        if self.work_dir is None:
            return
        self._enter(PipelineState.CLEANUP)
        remove_tree(self.work_dir)
        self.work_dir = None

    def _execute(self, report: RunReport, produce: Callable[[], CorpusReport]) -> RunReport:
        self.work_dir = Path(tempfile.mkdtemp(prefix="repo_corpus_"))
        try:
            corpus = produce()
        except Exception:
            self._cleanup()
            self._enter(PipelineState.FAILED)
            report.state = self.state
            raise
        self._cleanup()
        self._enter(PipelineState.DONE)
        report.state = self.state
        report.output = corpus.output
        report.records = corpus.records
        report.skipped = corpus.skipped
        return report

    def run(self) -> RunReport:
        """Download the repository snapshot and build its corpus.

        Raises:
            InvalidRepositoryError: if the repository is not ``owner/name``
            TransportError: if the archive cannot be retrieved
            ArchiveIntegrityError: if the archive is malformed
            PathTraversalError: if an entry escapes the scratch tree
            OutputWriteError: if the artifact cannot be written

        Returns:
            RunReport: final state, output path, written and skipped files
        """
        repository = validate_repository(self.settings.repository)
        report = RunReport(repository=repository, branch=self.settings.branch)

        def produce() -> CorpusReport:
            self._enter(PipelineState.FETCHING)
            report.branch = report.branch or self.source.resolve_branch(repository)
            archive = self.source.download_archive(repository, report.branch, self.work_dir / ARCHIVE_NAME)
            return self.build(archive, self.output_path(repository))

        return self._execute(report, produce)

    def run_local(self, archive: Path) -> RunReport:
        """Build the corpus of a zip archive already on disk.

        The corpus is named after the configured repository, or after the
        archive file name when no repository is set.
        """
        name = self.settings.repository.strip() or archive.stem
        report = RunReport(repository=name, branch=self.settings.branch)
        return self._execute(report, lambda: self.build(archive, self.output_path(name)))


def run_pipeline(settings: Settings, *, source: ArchiveSource | None = None) -> RunReport:
    """Run a full corpus build as configured by ``settings``.

    Uses ``settings.archive`` when set, otherwise downloads the snapshot of
    ``settings.repository`` through ``source`` (GitHub by default).
    """
    pipeline = Pipeline(settings, source=source)
    if settings.archive is not None:
        return pipeline.run_local(settings.archive)
    return pipeline.run()


def build_corpus_from_archive(
    archive: Path,
    output: Path,
    *,
    extension: str = DEFAULT_EXTENSION,
    workers: int = 1,
) -> RunReport:
    """Extract a local zip archive and write its corpus to ``output``."""
    settings = Settings(output=output, extension=extension, workers=workers, token="")
    return Pipeline(settings).run_local(archive)
