"""Console output for deodar commands."""
from __future__ import annotations

import sys
import threading

from core.archive import ArchiveConsole


class Console(ArchiveConsole):
    """Simple console output handler with configurable log level.

    Levels: none < error < info < debug
    Default: 'info'
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "info": 2,
        "debug": 3,
    }

    def __init__(self, level: str = "info", dry_run: bool = False):
        self.level_name = level
        self.level = self.LEVELS.get(level, self.LEVELS["info"])
        self.dry_run = dry_run
        # The watch worker and observer threads print concurrently.
        self._lock = threading.Lock()

    def _emit(self, text: str, *, stream=None) -> None:
        with self._lock:
            print(text, file=stream or sys.stdout, flush=True)

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit(f"[INFO] {message}")

    def notice(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit(f"  [NOTICE] {message}")

    def success(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit(f"[SUCCESS] {message}")

    def warning(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            self._emit(f"[WARNING] {message}", stream=sys.stderr)

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            self._emit(f"[ERROR] {message}", stream=sys.stderr)

    def dry(self, message: str) -> None:
        if self.dry_run:
            self._emit(f"[DRY] {message}")

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            self._emit(f"[DEBUG] {message}")


INVALID_PROJECT_LOCATION = (
    "You are not in the project folder, or you didn't name your plugin entry point correctly"
)
