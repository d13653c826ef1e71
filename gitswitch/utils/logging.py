"""Application logging facilities."""

from __future__ import annotations

import logging
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .paths import log_dir

ROOT_LOGGER_NAME = "gitswitch"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a child of the application logger.

    Handlers live on the application logger only, so modules may call this at
    import time without touching the filesystem.
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LoggingManager:
    """Central logging setup for file persistence and optional console output."""

    def __init__(self, directory: Path | None = None) -> None:
        self._lock = threading.Lock()
        self.directory = Path(directory) if directory else log_dir()
        self.log_file = self.directory / "application.log"
        self.logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.logger.setLevel(logging.DEBUG)
        self._console_handler: logging.Handler | None = None
        self._configure_handlers()

    def _configure_handlers(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        file_handler = RotatingFileHandler(
            self.log_file, maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        self.logger.addHandler(file_handler)

    def enable_console(self, level: int = logging.INFO) -> None:
        """Mirror log records to stderr, used by ``--verbose``."""
        with self._lock:
            if self._console_handler is not None:
                self._console_handler.setLevel(level)
                return
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            handler.setLevel(level)
            self.logger.addHandler(handler)
            self._console_handler = handler


logging_manager_singleton: LoggingManager | None = None


def get_logging_manager() -> LoggingManager:
    global logging_manager_singleton
    if logging_manager_singleton is None:
        logging_manager_singleton = LoggingManager()
    return logging_manager_singleton
