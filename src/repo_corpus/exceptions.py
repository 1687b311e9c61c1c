from dataclasses import dataclass
from pathlib import Path


@dataclass
class RepoCorpusError(Exception):
    """Base exception for errors in the repo_corpus module."""

    message: str = "repo_corpus failed."

    def __str__(self) -> str:
        return self.message


@dataclass
class InvalidRepositoryError(RepoCorpusError):
    """Raised when a repository identifier is not of the form ``owner/name``."""

    repository: str = ""
    message: str = "Repository must look like 'owner/name'."

    def __str__(self) -> str:
        return f"{self.message} Got: {self.repository!r}"


@dataclass
class TransportError(RepoCorpusError):
    """Raised when repository metadata or the archive cannot be retrieved."""

    url: str = ""
    reason: str = ""
    status_code: int | None = None
    message: str = "Could not retrieve the repository archive."

    def __str__(self) -> str:
        status = f" (status {self.status_code})" if self.status_code is not None else ""
        return f"{self.message} {self.url}{status}: {self.reason}"


@dataclass
class RepositoryNotFoundError(TransportError):
    """Raised when the remote API answers 404 for the repository or branch."""

    message: str = "Repository or branch not found."


@dataclass
class ArchiveIntegrityError(RepoCorpusError):
    """Raised when the archive is malformed or an entry cannot be extracted."""

    archive: str = ""
    reason: str = ""
    message: str = "The archive is not a valid zip archive."

    def __str__(self) -> str:
        return f"{self.message} {self.archive}: {self.reason}"


@dataclass
class PathTraversalError(RepoCorpusError):
    """Raised when an archive entry would be written outside the scratch root."""

    entry: str = ""
    root: Path | None = None
    message: str = "Archive entry escapes the extraction root."

    def __str__(self) -> str:
        return f"{self.message} entry={self.entry!r} root={self.root}"


@dataclass
class FileReadError(RepoCorpusError):
    """Raised when an extracted source file cannot be read."""

    path: Path | None = None
    reason: str = ""
    message: str = "Could not read source file."

    def __str__(self) -> str:
        return f"{self.message} {self.path}: {self.reason}"


@dataclass
class OutputWriteError(RepoCorpusError):
    """Raised when the corpus artifact or a downloaded archive cannot be written."""

    path: Path | None = None
    reason: str = ""
    message: str = "Could not write file."

    def __str__(self) -> str:
        return f"{self.message} {self.path}: {self.reason}"
