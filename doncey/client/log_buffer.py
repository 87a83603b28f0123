"""In-memory log buffer so the TUI can show recent session events."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime


@dataclass
class LogEntry:
    timestamp: datetime
    levelno: int
    name: str
    message: str

    def format(self) -> str:
        return f"{self.timestamp:%H:%M:%S} {logging.getLevelName(self.levelno)}: {self.message}"


class LogBuffer(logging.Handler):
    """Logging handler that keeps the last ``maxlen`` records.

    Writing to stderr would corrupt the full-screen terminal, so the UI
    reads from here instead.
    """

    def __init__(self, maxlen: int = 100) -> None:
        super().__init__()
        self._entries: deque[LogEntry] = deque(maxlen=maxlen)

    def emit(self, record: logging.LogRecord) -> None:
        self._entries.append(
            LogEntry(
                timestamp=datetime.fromtimestamp(record.created),
                levelno=record.levelno,
                name=record.name,
                message=record.getMessage(),
            )
        )

    def get_entries(
        self, count: int | None = None, min_level: int = logging.NOTSET
    ) -> list[LogEntry]:
        """Most recent entries at or above ``min_level``, oldest first."""
        entries = [e for e in self._entries if e.levelno >= min_level]
        if count is None:
            return entries
        return entries[-count:] if count > 0 else []

    def clear(self) -> None:
        self._entries.clear()
