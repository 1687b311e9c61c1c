from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

GITHUB_API_URL = "https://api.github.com"
FALLBACK_BRANCH = "main"
DEFAULT_EXTENSION = ".java"

DEFAULT_PACKAGE = "(default)"
NO_DECLARATION = "N/A"

FILE_MARKER = "// FILE: "
PACKAGE_MARKER = "// PACKAGE: "
DECLARATION_MARKER = "// DECLARATION: "
END_MARKER = "// END_OF_FILE"

OUTPUT_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
COPY_CHUNK_SIZE = 64 * 1024
PARTIAL_SUFFIX = ".part"


class DeclarationKind(StrEnum):
    """Keywords recognised as a file's identifying declaration."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"
    ANNOTATION = "@interface"
    NONE = NO_DECLARATION


class PipelineState(StrEnum):
    """Stages a pipeline run moves through."""

    INIT = "init"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    WALKING = "walking"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


class ArchiveEntry(BaseModel):
    """Metadata of one member of a zip archive.

    Attributes:
        name: Archive-internal path, as stored in the archive.
        is_dir: Whether the member is a directory.
        size: Declared uncompressed size in bytes (0 for directories).
        is_symlink: Whether the member stores a Unix symbolic link.
        is_encrypted: Whether the member is password protected.
        compress_type: Zip compression method id of the member.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Archive-internal path")
    is_dir: bool = Field(default=False, description="Directory member")
    size: int = Field(default=0, ge=0, description="Uncompressed size in bytes")
    is_symlink: bool = Field(default=False, description="Unix symbolic link member")
    is_encrypted: bool = Field(default=False, description="Password protected member")
    compress_type: int = Field(default=0, ge=0, description="Zip compression method id")


class ScratchTree(BaseModel):
    """Directory holding one run's extracted archive."""

    model_config = ConfigDict(frozen=True)

    root: Path = Field(..., description="Scratch directory owned by a single run")
    content_root: Path = Field(..., description="Wrapper directory of the snapshot, or root")
    files: tuple[Path, ...] = Field(default=(), description="Extracted file paths")


class NormalizedSource(BaseModel):
    """Result of normalizing one source text."""

    model_config = ConfigDict(frozen=True)

    cleaned_text: str
    declaration: str = NO_DECLARATION
    package_name: str = DEFAULT_PACKAGE


class NormalizedRecord(BaseModel):
    """One file of the corpus, ready to be wrapped in its envelope.

    Attributes:
        file_name: POSIX path relative to the snapshot root.
        package_name: Dotted package identifier, or ``(default)``.
        declaration_kind: First declaration keyword found, or ``N/A``.
        declaration_name: Identifier following the keyword (empty for ``N/A``).
        cleaned_text: Source text without comments and blank lines.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str
    package_name: str = DEFAULT_PACKAGE
    declaration_kind: DeclarationKind = DeclarationKind.NONE
    declaration_name: str = ""
    cleaned_text: str = ""

    @computed_field
    @property
    def declaration(self) -> str:
        """Render the declaration tag written to the envelope."""
        if self.declaration_kind is DeclarationKind.NONE:
            return NO_DECLARATION
        return f"{self.declaration_kind} {self.declaration_name}"


class SkippedFile(BaseModel):
    """A source file left out of the corpus because it could not be read."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    reason: str


class CorpusReport(BaseModel):
    """Outcome of writing a corpus artifact."""

    output: Path
    records: list[str] = Field(default_factory=list, description="File names in write order")
    skipped: list[SkippedFile] = Field(default_factory=list)


class RunReport(BaseModel):
    """Outcome of a whole pipeline run."""

    repository: str
    branch: str = ""
    state: PipelineState = PipelineState.INIT
    output: Path | None = None
    records: list[str] = Field(default_factory=list)
    skipped: list[SkippedFile] = Field(default_factory=list)
