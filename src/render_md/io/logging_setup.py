"""Logging bootstrap for render-md.

Every module logs to ``logging.getLogger(__name__)``; records propagate up
to the ``render_md`` logger, which is the only one that owns handlers. The
file handler is always attached. The stderr handler is skipped while the
viewer owns the terminal, since Textual would paint over it.

Environment:
    RENDER_MD_LOG_LEVEL  level name, default WARNING
    RENDER_MD_LOG_DIR    directory for per-run log files
    RENDER_MD_LOG_FILE   exact log file (overrides the directory)

// [LAW:single-enforcer] Logger handler wiring is enforced in this module only.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER_NAME = "render_md"
DEFAULT_LEVEL = "WARNING"
DEFAULT_LOG_DIR = "~/.local/share/render-md/logs"

STDERR_FORMAT = "render-md: %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3


@dataclass(frozen=True)
class LoggingRuntime:
    """Where logs go and at what level, as resolved by configure()."""

    level_name: str
    level: int
    file_path: str


_RUNTIME: LoggingRuntime | None = None


def resolve_level(raw: str | None) -> tuple[str, int]:
    """Level name from the environment; unknown names fall back to INFO."""
    level = logging.getLevelName(str(raw or DEFAULT_LEVEL).strip().upper())
    if not isinstance(level, int):
        level = logging.INFO
    return logging.getLevelName(level), level


def resolve_log_file() -> Path:
    explicit = os.environ.get("RENDER_MD_LOG_FILE")
    if explicit:
        return Path(explicit)
    log_dir = Path(os.path.expanduser(os.environ.get("RENDER_MD_LOG_DIR", DEFAULT_LOG_DIR)))
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return log_dir / f"render-md-{stamp}-{os.getpid()}.log"


def _build_handlers(level: int, file_path: Path, *, stderr: bool) -> list[logging.Handler]:
    file_handler = RotatingFileHandler(file_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    handlers: list[logging.Handler] = [file_handler]
    if stderr:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(STDERR_FORMAT))
        handlers.append(stream_handler)
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure(*, stderr: bool = True) -> LoggingRuntime:
    """Attach handlers to the ``render_md`` logger. Later calls are no-ops.

    Pass ``stderr=False`` while a full-screen app owns the terminal.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level = resolve_level(os.environ.get("RENDER_MD_LOG_LEVEL"))
    file_path = resolve_log_file()
    file_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()
    for handler in _build_handlers(level, file_path, stderr=stderr):
        logger.addHandler(handler)
    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(level_name=level_name, level=level, file_path=str(file_path))
    return _RUNTIME


def reset() -> None:
    """Detach handlers and forget the runtime so configure() runs again (tests)."""
    global _RUNTIME
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _RUNTIME = None
