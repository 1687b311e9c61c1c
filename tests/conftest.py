from __future__ import annotations

import zipfile
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from pathlib import Path

    MakeZip = Callable[..., Path]


@pytest.fixture
def make_zip(tmp_path: Path) -> MakeZip:
    """Return a factory writing ``{name: content}`` into a zip archive under ``tmp_path``.

    ``str`` contents are stored UTF-8 encoded, ``None`` creates a directory entry.
    """

    def _make(entries: Mapping[str, str | bytes | None], name: str = "archive.zip") -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for entry, content in entries.items():
                if content is None:
                    zf.writestr(zipfile.ZipInfo(entry if entry.endswith("/") else f"{entry}/"), b"")
                elif isinstance(content, str):
                    zf.writestr(entry, content.encode("utf-8"))
                else:
                    zf.writestr(entry, content)
        return path

    return _make
