"""Logging setup: a terse stderr console plus an optional debug log file."""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TextIO

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
DEFAULT_LOG_PATH = Path("~/.cache/kermit/kermit.log")
_FALLBACK_LOG_PATH = Path(".kermit/kermit.log")
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"

_ATTR_BOLD = "\x1b[1m"
_ATTR_COLOR = "\x1b[94m"
_ATTR_DEFAULT = "\x1b[39m"
_ATTR_OFF = "\x1b[0m"


class ConsoleFormatter(py_logging.Formatter):
    """Render records as ``[ debug ] message``, highlighted on a tty."""

    def __init__(self, *, color: bool = False) -> None:
        super().__init__("%(message)s")
        self.color = color

    def format(self, record: py_logging.LogRecord) -> str:
        label = "warn" if record.levelno == py_logging.WARNING else record.levelname.lower()
        message = super().format(record)
        if not self.color:
            return f"[ {label} ] {message}"
        return f"{_ATTR_BOLD}[ {_ATTR_COLOR}{label}{_ATTR_DEFAULT} ] {message}{_ATTR_OFF}"


def default_log_path() -> Path:
    try:
        resolved = DEFAULT_LOG_PATH.expanduser()
    except RuntimeError:
        resolved = (Path.cwd() / _FALLBACK_LOG_PATH).resolve()
    else:
        if not resolved.is_absolute():
            resolved = resolved.resolve()
    return resolved


def resolve_level(level: str) -> int:
    normalized = level.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    return LOG_LEVELS.get(normalized, py_logging.WARNING)


def _file_handler(log_file: str | Path) -> py_logging.Handler | None:
    try:
        log_path = Path(log_file).expanduser()
    except RuntimeError:
        log_path = Path(log_file)
    if not log_path.is_absolute():
        log_path = log_path.resolve()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = py_logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return None
    handler.setLevel(py_logging.DEBUG)
    handler.setFormatter(py_logging.Formatter(_FILE_FORMAT))
    return handler


def configure_logging(
    level: str = "WARN",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    """Reset the ``kermit`` logger.

    The console only shows ``level`` and above; the log file, when it can be
    opened, always receives everything down to DEBUG.
    """
    resolved = resolve_level(level)
    target = stream or sys.stderr

    logger = py_logging.getLogger("kermit")
    logger.handlers.clear()

    console = py_logging.StreamHandler(target)
    console.setLevel(resolved)
    console.setFormatter(ConsoleFormatter(color=stream is None and target.isatty()))
    logger.addHandler(console)

    file_handler = _file_handler(log_file) if log_file else None
    if file_handler is not None:
        logger.addHandler(file_handler)
        logger.setLevel(py_logging.DEBUG)
    else:
        logger.setLevel(resolved)

    logger.propagate = False
    return logger
