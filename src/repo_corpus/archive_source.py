"""Retrieval of repository snapshots from the GitHub REST API."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol

import requests

from repo_corpus import __version__
from repo_corpus.config import COPY_CHUNK_SIZE, FALLBACK_BRANCH, GITHUB_API_URL
from repo_corpus.exceptions import (
    InvalidRepositoryError,
    OutputWriteError,
    RepositoryNotFoundError,
    TransportError,
)
from repo_corpus.logging import logger

if TYPE_CHECKING:
    from pathlib import Path

_REPOSITORY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


class ArchiveSource(Protocol):
    """Anything able to provide a zip snapshot of a repository."""

    def resolve_branch(self, repository: str) -> str: ...

    def download_archive(self, repository: str, branch: str, destination: Path) -> Path: ...


def validate_repository(repository: str) -> str:
    """Normalize and check a repository identifier.

    Args:
        repository (str): identifier such as ``owner/name`` (surrounding
            whitespace, slashes and a trailing ``.git`` are ignored)

    Raises:
        InvalidRepositoryError: if the identifier is not ``owner/name``

    Returns:
        str: the cleaned identifier
    """
    cleaned = repository.strip().strip("/").removesuffix(".git")
    if not _REPOSITORY_PATTERN.match(cleaned) or any(part in {".", ".."} for part in cleaned.split("/")):
        raise InvalidRepositoryError(repository=repository)
    return cleaned


class GitHubArchiveSource:
    """Fetch repository metadata and zipballs from GitHub.

    Failures are never retried: any transport error or non-2xx answer is
    raised as a :class:`TransportError`.
    """

    def __init__(
        self,
        *,
        api_url: str = GITHUB_API_URL,
        token: str = "",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": f"repo-corpus/{__version__}",
            },
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _get(self, url: str, *, stream: bool = False) -> requests.Response:
        try:
            resp = self.session.get(url, timeout=self.timeout, stream=stream)
        except requests.RequestException as exc:
            raise TransportError(url=url, reason=str(exc)) from exc
        if resp.status_code == 404:  # noqa: PLR2004
            resp.close()
            raise RepositoryNotFoundError(url=url, reason=resp.reason or "Not Found", status_code=404)
        if not 200 <= resp.status_code < 300:  # noqa: PLR2004
            resp.close()
            raise TransportError(url=url, reason=resp.reason or "HTTP error", status_code=resp.status_code)
        return resp

    def resolve_branch(self, repository: str) -> str:
        """Return the default branch of ``repository``.

        Args:
            repository (str): ``owner/name``

        Raises:
            TransportError: if the metadata cannot be fetched or decoded

        Returns:
            str: the default branch name, ``main`` when the API omits it
        """
        url = f"{self.api_url}/repos/{validate_repository(repository)}"
        resp = self._get(url)
        try:
            info = resp.json()
        except ValueError as exc:
            raise TransportError(url=url, reason=f"invalid JSON: {exc}", status_code=resp.status_code) from exc
        branch = info.get("default_branch") if isinstance(info, dict) else None
        logger.info("default_branch_resolved", repository=repository, branch=branch or FALLBACK_BRANCH)
        return branch or FALLBACK_BRANCH

    def download_archive(self, repository: str, branch: str, destination: Path) -> Path:
        """Stream the zipball of ``repository`` at ``branch`` into ``destination``.

        Args:
            repository (str): ``owner/name``
            branch (str): branch, tag or commit to download
            destination (Path): file to write the archive to

        Raises:
            TransportError: if the download fails at any point
            OutputWriteError: if ``destination`` cannot be written

        Returns:
            Path: ``destination``
        """
        url = f"{self.api_url}/repos/{validate_repository(repository)}/zipball/{branch}"
        resp = self._get(url, stream=True)
        written = 0
        try:
            with resp, destination.open("wb") as fh:
                for chunk in resp.iter_content(chunk_size=COPY_CHUNK_SIZE):
                    fh.write(chunk)
                    written += len(chunk)
        except requests.RequestException as exc:
            raise TransportError(url=url, reason=str(exc)) from exc
        except OSError as exc:
            raise OutputWriteError(path=destination, reason=exc.strerror or str(exc)) from exc
        logger.info("archive_downloaded", repository=repository, branch=branch, bytes=written)
        return destination
