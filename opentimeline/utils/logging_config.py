"""Logging setup for OpenTimeline.

Every record carries a correlation ID so the lines of one timeline
resolution can be grepped out of a busy log.
"""

from __future__ import annotations

import contextvars
import logging
import sys
import time
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_FILE = Path(__file__).parent.parent.parent / "logs" / "opentimeline.log"

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation: 10MB per file, 5 old files kept
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "opentimeline_correlation_id", default=None
)


def current_correlation_id() -> str | None:
    """Return the correlation ID active in this thread or task, if any."""
    return _correlation_id.get()


class ContextFilter(logging.Filter):
    """Stamp each record with the active correlation ID ("-" when none)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


_context_filter = ContextFilter()


def _resolve_log_path(log_file: str | None) -> Path | None:
    if not log_file:
        return None
    if log_file == "default":
        return DEFAULT_LOG_FILE
    return Path(log_file)


def _attach(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    # The filter goes on handlers so records from child loggers get it too
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(_context_filter)
    root.addHandler(handler)


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure the root logger.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        level: Level name such as "DEBUG" or "warning". Unknown names mean INFO.
        log_file: Path of a rotating log file, "default" for
            logs/opentimeline.log, or None for console only.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    _attach(root, logging.StreamHandler(sys.stderr), log_level)

    log_path = _resolve_log_path(log_file)
    if log_path is None:
        return

    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    _attach(root, file_handler, log_level)
    root.info("Writing logs to %s", log_path)


@contextmanager
def log_context(correlation_id: str | None = None) -> Generator[str]:
    """Tag every log line inside the block with a correlation ID.

    The ID lives in a context variable, so concurrent resolutions in other
    threads keep their own.

    Args:
        correlation_id: ID to use. A short random one is generated if omitted.

    Yields:
        The active correlation ID.
    """
    active = correlation_id or uuid.uuid4().hex[:8]
    token = _correlation_id.set(active)
    try:
        yield active
    finally:
        _correlation_id.reset(token)


@contextmanager
def log_performance(logger: logging.Logger, operation: str) -> Generator[None]:
    """Log how long the block took, or how long it ran before failing.

    Exceptions are logged at ERROR and re-raised unchanged.

    Args:
        logger: Logger to report to.
        operation: Label used in the log lines.
    """
    started = time.perf_counter()
    logger.debug("%s: started", operation)
    try:
        yield
    except Exception as e:
        logger.error("%s: failed after %.3fs: %s", operation, time.perf_counter() - started, e)
        raise
    logger.info("%s: done in %.3fs", operation, time.perf_counter() - started)
