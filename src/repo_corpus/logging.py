from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME = "repo_corpus"

_STRUCTLOG_CONFIGURED = False


def _build_handler(filename: str | Path | None) -> logging.Handler:
    if filename:
        handler: logging.Handler = logging.FileHandler(str(filename), encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _configure_structlog() -> None:
    global _STRUCTLOG_CONFIGURED  # noqa: PLW0603
    if _STRUCTLOG_CONFIGURED:
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        # level filtering happens on the stdlib logger so later calls can change it
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _STRUCTLOG_CONFIGURED = True


def setup_logging(filename: str | Path | None = None, *, verbose: bool = False) -> structlog.BoundLogger:
    """Route the JSON logs of repo_corpus to exactly one sink.

    Every call replaces the handlers of the ``repo_corpus`` logger, so
    asking for a log file moves the output there instead of duplicating it
    on stderr. The root logger is left alone.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        verbose: Emit debug events as well.

    Returns:
        A structlog logger instance bound to the ``repo_corpus`` logger.
    """
    _configure_structlog()
    std_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(std_logger.handlers):
        std_logger.removeHandler(handler)
        handler.close()
    std_logger.addHandler(_build_handler(filename))
    std_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    std_logger.propagate = False
    return structlog.get_logger(LOGGER_NAME)


logger = setup_logging()
