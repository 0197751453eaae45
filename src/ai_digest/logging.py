from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME = "ai_digest"

_PROCESSORS = [
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(),
]


def _level(*, verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.INFO


def set_verbosity(*, verbose: bool) -> None:
    """Switch the logging threshold between INFO and DEBUG.

    Loggers are not cached on first use, so loggers already handed to the
    aggregation components pick up the new threshold on their next call.

    Args:
        verbose: True to emit debug events, False to stop at INFO.
    """
    level = _level(verbose=verbose)
    logging.getLogger().setLevel(level)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def setup_logging(filename: str | Path | None = None, *, verbose: bool = False) -> structlog.BoundLogger:
    """Set up structured logging for the ai_digest package.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        verbose: Whether debug events are emitted.

    Returns:
        A structlog logger bound to the ai_digest name.
    """
    handlers: list[logging.Handler] = []
    if filename:
        handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=_level(verbose=verbose),
        handlers=handlers,
        format="%(message)s",
        force=True,
    )
    structlog.configure(
        processors=_PROCESSORS,
        wrapper_class=structlog.make_filtering_bound_logger(_level(verbose=verbose)),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    return get_logger()


def get_logger() -> structlog.BoundLogger:
    """Return a logger bound to the ai_digest name."""
    return structlog.get_logger(LOGGER_NAME)
