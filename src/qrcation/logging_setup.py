"""Logging setup for QRcation.

Logs go to a rotating ``app.log`` and to stderr. The TUI quiets stderr
while it owns the terminal, so the file is the full record of a session.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"
LOG_MAX_BYTES = 2_000_000
LOG_BACKUPS = 5


def _default_log_dir() -> Path:
    override = os.getenv("QRCATION_LOG_DIR")
    if override:
        return Path(override)
    local_appdata = os.getenv("LOCALAPPDATA")
    if local_appdata:
        return Path(local_appdata) / "QRcation" / "logs"
    return Path.home() / ".qrcation" / "logs"


def _level_from_env() -> int:
    level = logging.getLevelName(os.getenv("QRCATION_LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _is_console_handler(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and not isinstance(
        handler, logging.FileHandler
    )


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = RotatingFileHandler(
        path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def init_logging(app_name: str = "qrcation") -> Path:
    """Attach the file and stderr handlers once and return the log path."""
    log_path = _default_log_dir() / "app.log"
    level = _level_from_env()
    root = logging.getLogger()
    root.setLevel(level)

    file_error: OSError | None = None
    if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            root.addHandler(_file_handler(log_path, level))
        except OSError as exc:
            file_error = exc
    if not any(_is_console_handler(h) for h in root.handlers):
        root.addHandler(_console_handler(level))

    app_logger = logging.getLogger(app_name)
    if file_error is not None:
        app_logger.warning("File logging disabled: %s", file_error)
    app_logger.info("Logging initialized at %s", log_path)
    return log_path


def set_console_level(level: int) -> None:
    """Adjust console (stderr) handler level."""
    for handler in logging.getLogger().handlers:
        if _is_console_handler(handler):
            handler.setLevel(level)
