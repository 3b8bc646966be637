"""Append-only activity log for sync operations.

Entries look like ``[2024-05-01 12:00:00] Wrote /home/me/.env``. Only phase
markers, counts and paths are logged here, never secret values.
"""
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

ACTIVITY_LOGGER_NAME = "keychain_secrets.activity"
ENTRY_FORMAT = "[%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ActivityLog:
    """
    Writes entries to the log file configured as ``log_file``.

    The underlying logger does not propagate, so entries reach the file but
    not the console. If the file cannot be opened the log is disabled with a
    warning; losing the activity log never blocks an export or import.
    """

    def __init__(self, path: str):
        self.path = path
        self._logger = logging.getLogger(ACTIVITY_LOGGER_NAME)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler: Optional[logging.FileHandler] = None
        self._open()

    def _open(self) -> None:
        # one activity file per process; drop handlers from earlier instances
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        try:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        except OSError as e:
            logger.warning(f"Activity log disabled, cannot open {self.path}: {e}")
            return

        handler.setFormatter(logging.Formatter(ENTRY_FORMAT, datefmt=DATE_FORMAT))
        self._logger.addHandler(handler)
        self._handler = handler

    def write(self, message: str) -> None:
        if self._handler is not None:
            self._logger.info(message)

    def close(self) -> None:
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None
