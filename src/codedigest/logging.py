from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME = "codedigest"

_LOGGING_CONFIGURED = False


def setup_logging(filename: str | Path | None = None) -> structlog.BoundLogger:
    """Set up structured logging for the codedigest package.

    The first call configures structlog. A later call with a ``filename`` only redirects
    the standard library handlers to that file.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.

    Returns:
        A structlog logger instance configured for the codedigest package.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if not _LOGGING_CONFIGURED or filename:
        handlers: list[logging.Handler] = []
        if filename:
            handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
        else:
            handlers.append(logging.StreamHandler(sys.stderr))

        logging.basicConfig(
            level=logging.INFO,
            handlers=handlers,
            format="%(message)s",
            force=_LOGGING_CONFIGURED,
        )
    if not _LOGGING_CONFIGURED:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger(LOGGER_NAME)


def set_verbosity(*, quiet: bool = False, ultra_quiet: bool = False) -> None:
    """Adjust how much the walker reports.

    Per-file events ("added", "skipped") are emitted at INFO, traversal warnings at
    WARNING and per-file errors at ERROR.

    Args:
        quiet: hide per-file events.
        ultra_quiet: hide everything but errors.
    """
    level = logging.INFO
    if quiet:
        level = logging.WARNING
    if ultra_quiet:
        level = logging.ERROR
    logging.getLogger(LOGGER_NAME).setLevel(level)


logger = setup_logging()
