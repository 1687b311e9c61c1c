from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

from repo_corpus.logging import LOGGER_NAME, setup_logging

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _restore_stderr_sink() -> Iterator[None]:
    yield
    setup_logging()


def _events(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


@pytest.mark.unit
def test_log_file_replaces_stderr(tmp_path: Path) -> None:
    log_file = tmp_path / "run.log"

    log = setup_logging(log_file)
    log.info("corpus_written", records=2)

    handlers = logging.getLogger(LOGGER_NAME).handlers
    assert [type(h) for h in handlers] == [logging.FileHandler]
    events = _events(log_file)
    assert [(e["event"], e["level"], e["records"]) for e in events] == [("corpus_written", "info", 2)]


@pytest.mark.unit
def test_repeated_setup_keeps_a_single_handler() -> None:
    setup_logging()
    setup_logging()

    std_logger = logging.getLogger(LOGGER_NAME)
    assert [type(h) for h in std_logger.handlers] == [logging.StreamHandler]
    assert std_logger.propagate is False


@pytest.mark.unit
def test_verbose_emits_debug_events(tmp_path: Path) -> None:
    quiet = tmp_path / "quiet.log"
    chatty = tmp_path / "chatty.log"

    setup_logging(quiet).debug("file_normalized", path="A.java")
    setup_logging(chatty, verbose=True).debug("file_normalized", path="A.java")

    assert _events(quiet) == []
    assert [e["path"] for e in _events(chatty)] == ["A.java"]
