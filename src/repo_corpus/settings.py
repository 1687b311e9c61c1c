from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from repo_corpus.config import DEFAULT_EXTENSION, GITHUB_API_URL

ENV_FILE = find_dotenv(usecwd=True)
TOKEN_ENV_VAR = "GITHUB_TOKEN"


def default_token() -> str:
    """Read the GitHub token from the environment, then from the ``.env`` file."""
    token = os.environ.get(TOKEN_ENV_VAR, "")
    if not token and ENV_FILE:
        token = dotenv_values(ENV_FILE).get(TOKEN_ENV_VAR) or ""
    return token


class Settings(BaseModel):
    """Configuration settings for the repo_corpus module."""

    model_config = ConfigDict(extra="forbid")

    repository: str = Field(default="", description="Repository as owner/name.")
    branch: str = Field(default="", description="Branch; empty resolves the default branch.")
    extension: str = Field(default=DEFAULT_EXTENSION, description="Source file suffix.")
    output: Path | None = Field(default=None, description="Output file.")
    output_dir: Path = Field(default_factory=Path.cwd, description="Directory for generated output names.")
    archive: Path | None = Field(default=None, description="Local zip archive instead of a download.")

    api_url: str = Field(default=GITHUB_API_URL, description="GitHub API base URL.")
    token: str = Field(default_factory=default_token, description="GitHub token.", repr=False)
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds.")

    workers: int = Field(default=1, ge=1, description="Normalization threads.")
    max_entries: int = Field(default=100_000, ge=1, description="Maximum archive entries.")
    max_total_bytes: int = Field(
        default=2_000_000_000,
        ge=1,
        description="Maximum declared uncompressed archive size.",
    )
    log_file: str = Field(default="", description="Log file path.")
    verbose: bool = Field(default=False, description="Log debug events.")

    @field_validator("extension")
    @classmethod
    def _dotted_extension(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "extension must not be empty"
            raise ValueError(msg)
        return value if value.startswith(".") else f".{value}"


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML mapping of settings.

    Args:
        path (Path): YAML file; keys are ``Settings`` field names

    Raises:
        ValueError: if the document is not a mapping

    Returns:
        dict[str, Any]: the settings found in the file
    """
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping of settings, got {type(data).__name__}"
        raise ValueError(msg)
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def load_settings(config_file: Path | None = None, **overrides: Any) -> Settings:  # noqa: ANN401
    """Build settings from an optional YAML file and explicit overrides.

    Overrides set to None are ignored, so unset CLI options keep the value
    from the file or the default.

    Args:
        config_file (Path | None): optional YAML configuration file
        **overrides: values taking precedence over the file

    Returns:
        Settings: the validated settings
    """
    values: dict[str, Any] = read_config_file(config_file) if config_file else {}
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings.model_validate(values)
