"""Leveled console output for the orchestrator."""
from __future__ import annotations

from pathlib import Path
from typing import TextIO
import sys


class Console:
    """Simple console output handler with configurable log level.

    Levels: none < error < info < debug. When ``log_file`` is set every
    emitted line is appended to it as well.
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "info": 2,
        "debug": 3,
    }

    def __init__(self, level: str = "info", *, log_file: Path | None = None) -> None:
        if level not in self.LEVELS:
            supported = ", ".join(self.LEVELS)
            raise ValueError(f"Unknown log level '{level}'. Supported: {supported}")
        self.level_name = level
        self.level = self.LEVELS[level]
        self.log_file = log_file

    def _emit(self, line: str, stream: TextIO) -> None:
        print(line, file=stream)
        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open("a", encoding="utf-8") as handle:
                handle.write(f"{line}\n")

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit(f"[INFO] {message}", sys.stdout)

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            self._emit(f"[ERROR] {message}", sys.stderr)

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            self._emit(f"[DEBUG] {message}", sys.stdout)


__all__ = ["Console"]
